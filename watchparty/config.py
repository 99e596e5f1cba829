# ============================================
#     Watch Party — Global Configuration
# ============================================

import os

# =========================================
#   ENVIRONMENT
# =========================================
# Expected values: "dev", "prod"
ENV = os.getenv("ENV", "dev").lower()

IS_PROD = ENV == "prod"

# =========================================
#   SERVER
# =========================================
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))

# Socket.IO + HTTP diagnostics are called from browser extensions
# injected into arbitrary video sites.
CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "*")
CORS_ALLOWED_METHODS = "GET, POST, OPTIONS, PUT, PATCH, DELETE"

# =========================================
#   PATHS
# =========================================
# Project root = one level above /watchparty
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

LOG_DIR = os.getenv("WATCHPARTY_LOG_DIR") or os.path.join(PROJECT_ROOT, "var", "logs")
DEFAULT_LOG_FILE = os.path.join(LOG_DIR, "watchparty.log")
LOG_FILE = os.getenv("WATCHPARTY_LOG_FILE", DEFAULT_LOG_FILE)

os.makedirs(LOG_DIR, exist_ok=True)

# =========================================
#   SESSIONS / USERS
# =========================================
ID_BYTES = 8                    # 8 random octets -> 16 hex chars
ID_LENGTH = ID_BYTES * 2

DEFAULT_SESSION_STATE = "paused"

JOINED_NOTICE = "joined"
LEFT_NOTICE = "left"

# Number of lock stripes used to serialize work per user / per session.
# Sessions hashing to different stripes never contend.
LOCK_STRIPES = int(os.getenv("LOCK_STRIPES", "64"))
