"""Cart-wide constants.

Keeps storage names and limits in one place so the store, the backends
and the bootstrap agree on them.
"""

# ============== DURABLE STORAGE ==============
CART_STORAGE_KEY = "bts-cart-storage"
CART_STORAGE_VERSION = 0
DEFAULT_ORIGIN = "default"
DEFAULT_STORAGE_DIR = ".bts-cart"
REDIS_KEY_PREFIX = "bts"

STORAGE_BACKEND_AUTO = "auto"
STORAGE_BACKEND_MEMORY = "memory"
STORAGE_BACKEND_FILE = "file"
STORAGE_BACKEND_REDIS = "redis"
STORAGE_BACKENDS = {
    STORAGE_BACKEND_AUTO,
    STORAGE_BACKEND_MEMORY,
    STORAGE_BACKEND_FILE,
    STORAGE_BACKEND_REDIS,
}

# ============== MONEY ==============
DEFAULT_CURRENCY_DECIMALS = 2
MAX_CURRENCY_DECIMALS = 6
MAX_PRICE_INTEGER_DIGITS = 15  # prices must stay below 10**15
TOTAL_PRECISION_DIGITS = 40  # widest total reported exactly

# ============== OPTIMISTIC UPDATES ==============
MAX_SNAPSHOTS = 5

# ============== REDIS ==============
REDIS_SOCKET_TIMEOUT_SECONDS = 5
