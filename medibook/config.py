import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./medibook.db")

# Firebase Configuration (identity provider)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Frontend base URL, used for CORS defaults
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:3000"
).split(",")

# Booking rules
BOOKING_WINDOW_DAYS = int(os.getenv("BOOKING_WINDOW_DAYS", "30"))
# Partial unique index on (doctor_id, date, time) for pending/approved rows.
# Off by default: concurrent bookers may both claim a free slot.
ENFORCE_SLOT_UNIQUENESS = os.getenv("ENFORCE_SLOT_UNIQUENESS", "false").lower() == "true"

# Live notification feed: pushes buffered per subscriber before dropping
NOTIFICATION_QUEUE_SIZE = int(os.getenv("NOTIFICATION_QUEUE_SIZE", "100"))

# Rate limiting is backed by Redis and fails closed; disable for local development
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"
