"""Application settings."""

import os
from pathlib import Path

# Backend (hosted store). Empty values switch to the local store.
BALLOT_URL = os.getenv("BALLOT_URL", "")
BALLOT_ANON_KEY = os.getenv("BALLOT_ANON_KEY", "")
MOCK_MODE = not BALLOT_URL or not BALLOT_ANON_KEY

# Local store
LOCAL_DB_PATH = os.getenv("BALLOT_LOCAL_DB", ":memory:")
LOCAL_ANON_KEY = "local-anon-key"
ADMIN_EMAIL = os.getenv("BALLOT_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("BALLOT_ADMIN_PASSWORD", "admin")

# Logging
LOG_DIR = Path(os.getenv("BALLOT_LOG_DIR", "logs"))

# HTTP
API_TIMEOUT = float(os.getenv("BALLOT_TIMEOUT", "30"))
MAX_RETRIES = int(os.getenv("BALLOT_MAX_RETRIES", "3"))
RETRY_DELAY = float(os.getenv("BALLOT_RETRY_DELAY", "1.0"))

# Live vote feed
POLL_INTERVAL = float(os.getenv("BALLOT_POLL_INTERVAL", "2.0"))

# Fingerprint
FINGERPRINT_ALGORITHM = os.getenv("BALLOT_FINGERPRINT_ALGORITHM", "sha256")
