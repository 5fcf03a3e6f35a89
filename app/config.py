import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Production uses postgresql+psycopg://...; local runs fall back to a SQLite file
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cleaning_bookings.db")

# Currency used for every stored amount (minor units: piastres for EGP)
CURRENCY = os.getenv("CURRENCY", "EGP")

# Saved quotes stay valid for this many days
QUOTE_EXPIRY_DAYS = int(os.getenv("QUOTE_EXPIRY_DAYS", "30"))

# Value of one loyalty point in minor units (10 piastres per point)
LOYALTY_POINT_VALUE = int(os.getenv("LOYALTY_POINT_VALUE", "10"))

# Redis cache for the public pricing catalogue
CACHE_ENABLED = os.getenv("CACHE_ENABLED", "true").lower() == "true"
PRICING_CACHE_TTL = int(os.getenv("PRICING_CACHE_TTL", "600"))  # seconds
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_SSL = os.getenv("REDIS_SSL", "false").lower() == "true"

# Frontend base URL, used to build shareable quote links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
