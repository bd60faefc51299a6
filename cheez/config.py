"""
Application configuration — loaded once at startup.

Handlers read these as ``config.NAME`` at call time, so tests can
monkeypatch individual settings.
"""

import os
from decimal import Decimal

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cheez.db")

SESSION_COOKIE = os.getenv("SESSION_COOKIE", "cheez_sid")
SESSION_TTL_MINUTES = int(os.getenv("SESSION_TTL_MINUTES", str(7 * 24 * 60)))
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "0") == "1"
PASSWORD_ITERATIONS = int(os.getenv("PASSWORD_ITERATIONS", "260000"))

DELIVERY_FEE = Decimal(os.getenv("DELIVERY_FEE", "99"))
FREE_DELIVERY_THRESHOLD = Decimal(os.getenv("FREE_DELIVERY_THRESHOLD", "500"))

VERIFY_TOTALS = os.getenv("VERIFY_TOTALS", "1") == "1"
TOTALS_TOLERANCE = Decimal(os.getenv("TOTALS_TOLERANCE", "0.01"))

# "reject" refuses an order that would oversell; "clamp" floors stock at zero.
OVERSELL_POLICY = os.getenv("OVERSELL_POLICY", "reject")
STRICT_STATUS_TRANSITIONS = os.getenv("STRICT_STATUS_TRANSITIONS", "0") == "1"

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEBUG = os.getenv("DEBUG", "0") == "1"
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
