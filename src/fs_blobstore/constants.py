"""Constants for fs-blobstore."""

# Default configuration file, relative to the working directory
CONFIG_FILE = "fs-blobstore.yaml"

# Environment overrides
ENV_BASE_PATH = "FS_BLOBSTORE_PATH"
ENV_FSYNC = "FS_BLOBSTORE_FSYNC"
ENV_LOG_LEVEL = "FS_BLOBSTORE_LOG_LEVEL"

# Version
VERSION = "0.1.0"
