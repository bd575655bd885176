"""
Configuration-related constants and resource limits.
"""

# Maximum config file size (1MB); procsup configs are a few dozen lines
MAX_CONFIG_SIZE_BYTES = 1024 * 1024

DEFAULT_ENV_PREFIX = "PROCSUP_"

DEFAULT_CONFIG_FILENAME = "procsup.yaml"
