"""
Operation orchestrators for backup jobs.
"""

from .backup_manager import BackupManager

__all__ = ["BackupManager"]
