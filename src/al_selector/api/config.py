import os
from dotenv import load_dotenv

load_dotenv()

MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', '16777216'))  # 16 MB default, feature vectors can be large
API_KEY = os.getenv("API_KEY", "")
RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")
RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "600 per minute")
SENTRY_DSN = os.getenv("SENTRY_DSN", "")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0"))
APP_ENV = os.getenv("APP_ENV", "production")
APP_VERSION = os.getenv("APP_VERSION", "0.1.0")

# Sessions
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "32"))
BATCH_SIZE_LIMIT = int(os.getenv("BATCH_SIZE_LIMIT", "100"))
