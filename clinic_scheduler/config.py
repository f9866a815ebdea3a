import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic_scheduler.db")

# Record Payment transaction retries (additional attempts after the first)
PAYMENT_MAX_RETRIES = int(os.getenv("PAYMENT_MAX_RETRIES", "2"))
# Linear backoff: attempt N waits N * this many seconds
PAYMENT_RETRY_BACKOFF_SECONDS = float(os.getenv("PAYMENT_RETRY_BACKOFF_SECONDS", "0.25"))

# When true, a payment or cancellation that references a vanished appointment or
# client raises StaleReferenceError instead of being treated as a no-op
STRICT_REFERENCES = os.getenv("STRICT_REFERENCES", "false").lower() == "true"

# Default revenue sharing used by revenue reports when the caller sends none
CLINIC_REVENUE_PERCENTAGE = float(os.getenv("CLINIC_REVENUE_PERCENTAGE", "100"))
PHYSICIAN_REVENUE_PERCENTAGE = float(os.getenv("PHYSICIAN_REVENUE_PERCENTAGE", "0"))

# Frontend base URL (Electron shell serves the SPA locally by default)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Security and CORS
IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:3000,app://."
).split(",")
