"""Version information for the XO backup orchestrator."""

__version__ = "0.4.0"
__version_date__ = "2026-10-18"
