"""Centralized constants for the XO backup orchestrator."""

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPT = 130

# Logger name shared by every module
LOGGER_NAME = "xo_backup"

# Power states reported for backup jobs
POWER_STATE_ENABLED = "Enabled"
POWER_STATE_DISABLED = "Disabled"

# Backup job types
BACKUP_TYPE_VM = "VM"
BACKUP_TYPE_MIRROR = "Mirror"
BACKUP_TYPE_METADATA = "Metadata"
BACKUP_TYPES = (BACKUP_TYPE_VM, BACKUP_TYPE_MIRROR, BACKUP_TYPE_METADATA)

# Backup modes
BACKUP_MODES = ("full", "delta")

# Remote object type used by xo.getAllObjects
BACKUP_OBJECT_TYPE = "backup"

# JSON-RPC methods
METHOD_BACKUP_CREATE = "backup.create"
METHOD_BACKUP_SET = "backup.set"
METHOD_BACKUP_DELETE = "backup.delete"
METHOD_GET_ALL_OBJECTS = "xo.getAllObjects"

# Xen Orchestra API error code for a missing object
XO_ERROR_NO_SUCH_OBJECT = 1

# Address families understood by the address-assignment wait
ADDRESS_FAMILIES = ("ipv4", "ipv6")

# Wait defaults (in seconds), shared by every wait mode
DEFAULT_WAIT_TIMEOUT = 300
DEFAULT_POLL_INTERVAL = 5
DEFAULT_RETRY_BUDGET = 3
DEFAULT_MIN_CONFIRMATIONS = 1

# Fallback delay after an update when the convergence wait is disabled
DEFAULT_SETTLE_DELAY = 0

# RPC transport settings
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_RETRY_MAX_ATTEMPTS = 5
RPC_ENDPOINT_PATH = "/api/"

# Environment variables read by ClientConfig.from_env
ENV_URL = "XOA_URL"
ENV_TOKEN = "XOA_TOKEN"
ENV_USER = "XOA_USER"
ENV_PASSWORD = "XOA_PASSWORD"  # nosec B105
ENV_INSECURE = "XOA_INSECURE"
ENV_REQUEST_TIMEOUT = "XOA_REQUEST_TIMEOUT"
