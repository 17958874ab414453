"""Constants used throughout duct."""

# Networking
DEFAULT_NETWORK_DRIVER = "bridge"
DEFAULT_HOST_IP = "0.0.0.0"

# Teardown
KILL_SIGNAL = "SIGKILL"
TEARDOWN_ERROR_MESSAGE = "there were errors (see log)"

# Signal watcher
WATCHER_THREAD_NAME = "duct-signal-watcher"
WATCHER_JOIN_TIMEOUT = 5.0

# Readiness polling
READINESS_POLL_INTERVAL = 0.1

# Logging
LOGGER_NAME = "duct.composer"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Manifest files
DEFAULT_MANIFEST_FILE = "duct.yaml"
DEFAULT_BUILD_CONTEXT = "."
