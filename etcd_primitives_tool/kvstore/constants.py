"""
Constants for kvstore operations.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

# Connection defaults
DEFAULT_ENDPOINTS = "127.0.0.1:2379"
DEFAULT_PORT = 2379
DEFAULT_DIAL_TIMEOUT = 3  # seconds

# Startup status check (the client does not raise on a dead endpoint by itself)
STATUS_CHECK_ATTEMPTS = 3
STATUS_RETRY_DELAY = 1.0  # seconds between attempts

# Default TTLs (in seconds)
DEFAULT_LOCK_TTL = 10
DEFAULT_LEASE_TTL = 60

# Keepalive cadence: renew every ttl / divisor seconds, never faster than the floor
KEEPALIVE_INTERVAL_DIVISOR = 3
KEEPALIVE_MIN_INTERVAL = 0.5

# Seconds to wait for a cancelled keepalive thread to exit
KEEPALIVE_JOIN_TIMEOUT = 5.0

# Key namespaces
PREFIX_LOCK = "/locks/"
DEFAULT_DISPATCH_LOCK_KEY = "/locks/dispatcher"

# Queue behavior
DEFAULT_QUEUE_PRIORITY = 5
MAX_QUEUE_PRIORITY = 65535  # priorities are encoded as five digits
QUEUE_MAX_MESSAGES = 10  # Max messages to peek at once
QUEUE_POP_ATTEMPTS = 16  # claims lost to other consumers before giving up
QUEUE_TOP_PRIORITY = 0  # pinned messages jump ahead of everything waiting
QUEUE_WAITING_PRIORITY = DEFAULT_QUEUE_PRIORITY

# Watch polling (in-memory store wakes up this often to expire leases)
WATCH_POLL_INTERVAL = 0.1

# Key limits
MAX_KEY_LENGTH = 1024
