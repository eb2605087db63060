# oracle/config.py
# Configuration for the oracle (TinyMT32 service)

# Network config
HOST = '127.0.0.1'
PORT = 5000

# Seed configuration:
# - SEED_MODE:
#     'fixed'  : use the integer in SEED (if SEED is None, falls back to DEFAULT_SEED)
#     'random' : use os.urandom(4) at startup (non-deterministic each run)
#     'time'   : use current unix time truncated to 32 bits - low entropy (for demo)
SEED_MODE = 'fixed'   # 'fixed' | 'random' | 'time'

# If SEED_MODE == 'fixed', use this SEED (32-bit integer).
SEED = 1  # or None

DEFAULT_SEED = 0x12345678

# If SEED_MODE == 'time', this controls whether we use seconds or milliseconds.
# 's' -> int(time.time()), 'ms' -> int(time.time() * 1000)
TIME_GRANULARITY = 's'  # 's' or 'ms'

# How many bits the oracle reveals on each /get_output call (1..32)
OUTPUT_BITS = 32
OUTPUT_SELECT = 'high'   # 'high' or 'low'

# Optional rate limit (requests per second). None or 0 means no limit.
RATE_LIMIT_RPS = None

# Logging level
LOG_LEVEL = 'INFO'
