import os

# Service
APP_VERSION = os.getenv("DIAGNOSIS_APP_VERSION", "0.4.0")

# Logging
LOG_LEVEL = os.getenv("DIAGNOSIS_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Cache (12 hours)
CACHE_TTL_SECONDS = int(os.getenv("DIAGNOSIS_CACHE_TTL_SECONDS", "43200"))

# Redirect resolution
RESOLVE_TIMEOUT_SECONDS = float(os.getenv("DIAGNOSIS_RESOLVE_TIMEOUT_SECONDS", "12"))

# Browser scrape
SCRAPE_DEADLINE_SECONDS = float(os.getenv("DIAGNOSIS_SCRAPE_DEADLINE_SECONDS", "55"))
NAVIGATION_TIMEOUT_MS = int(os.getenv("DIAGNOSIS_NAVIGATION_TIMEOUT_MS", "60000"))
CONTENT_WAIT_MS = int(os.getenv("DIAGNOSIS_CONTENT_WAIT_MS", "20000"))
CONTENT_MIN_TEXT = int(os.getenv("DIAGNOSIS_CONTENT_MIN_TEXT", "500"))
HEADLESS = os.getenv("DIAGNOSIS_HEADLESS", "1") != "0"

# Keywords
EXTRA_STOPWORDS = [
    w.strip() for w in os.getenv("DIAGNOSIS_EXTRA_STOPWORDS", "").split(",") if w.strip()
]
