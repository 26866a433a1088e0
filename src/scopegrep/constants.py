"""Constants for scopegrep."""

# Ignore files consulted in every visited directory, farthest first
DEFAULT_IGNORE_FILES = (".gitignore", ".ignore")

# Version control directories that are never searched or descended
VCS_DIRS = frozenset({".git"})

# Path segment standing in for a scope root that has no name (e.g. "/")
SCOPE_ROOT_LABEL = "@root"

# Optional per-tree configuration file (inside the search root)
CONFIG_FILE = ".scopegrep.yaml"

# Environment overrides
ENV_WORKERS = "SCOPEGREP_WORKERS"
ENV_MODE = "SCOPEGREP_MODE"

# Worker pool
DEFAULT_WORKERS = 8
DEFAULT_QUEUE_SIZE = 256
POLL_INTERVAL = 0.05

# Version
VERSION = "0.1.0"
