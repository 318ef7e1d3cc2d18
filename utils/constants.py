"""
Constants and configuration values for EventPump.
"""

# Application metadata
__version__ = "1.0.0"
__author__ = "eventpump contributors"

# Stream session defaults
DEFAULT_SLEEP_TIME = 0.5  # Seconds to sleep between poll cycles
DEFAULT_EXEC_LIMIT = 600  # Hard cap on a session in seconds (0 = unlimited)
DEFAULT_CLIENT_RECONNECT = 1  # Seconds the client waits before reconnecting
DEFAULT_KEEP_ALIVE_TIME = 300  # Heartbeat interval in seconds

# Keys the session configuration always carries
BUILTIN_SETTINGS = (
    'sleep_time',
    'exec_limit',
    'client_reconnect',
    'allow_cors',
    'keep_alive_time',
    'is_reconnect',
    'use_chunked_encoding',
)
READ_ONLY_SETTINGS = ('is_reconnect',)

# HTTP
LAST_EVENT_ID_HEADER = 'Last-Event-ID'
EVENT_STREAM_MIMETYPE = 'text/event-stream'

# Storage mechanisms registered on first use
CACHE_MECHANISM = 'cache'
FILE_MECHANISM = 'file'
DEFAULT_CACHE_BACKEND = 'dogpile.cache.memory'

# Retry Configuration
DEFAULT_RETRY_ATTEMPTS = 3  # Retry attempts for storage writes
DEFAULT_RETRY_DELAY = 0.1  # Initial delay between retries in seconds

# Task event log
DEFAULT_EVENT_LOG_SIZE = 1000  # Entries kept before the oldest are dropped
TASK_COMPLETE_EVENT = 'task_complete'

# Configuration File
CONFIG_FILE_PATH = 'config.ini'  # Path to application configuration file
