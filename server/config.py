# server/config.py
# ------------------------------------------------------------
# Server knobs. Every value can be overridden from the environment.
# ------------------------------------------------------------
import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(BASE_DIR, "data")

# sqlite file by default; a postgresql:// URI switches to psycopg2
DB_URI = os.environ.get("ROLLCALL_DB_URI", os.path.join(DATA_DIR, "app.db"))

HOST = os.environ.get("ROLLCALL_HOST", "127.0.0.1")
PORT = int(os.environ.get("ROLLCALL_PORT", "5000"))
SECRET_KEY = os.environ.get("ROLLCALL_SECRET_KEY", "dev-secret-change-this")

# face descriptors travel inside JSON bodies
JSON_BODY_LIMIT_MB = int(os.environ.get("ROLLCALL_BODY_LIMIT_MB", "50"))

LOG_LEVEL = os.environ.get("ROLLCALL_LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("ROLLCALL_LOG_FILE") or None

VALID_STATUSES = ("present", "absent", "excused")
