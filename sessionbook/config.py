import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Embedded store by default; any SQLAlchemy URL works
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sessionbook.db")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Schedule generation
DEFAULT_GENERATION_HORIZON_DAYS = int(os.getenv("DEFAULT_GENERATION_HORIZON_DAYS", "90"))
DEFAULT_SESSION_DURATION_MINUTES = int(os.getenv("DEFAULT_SESSION_DURATION_MINUTES", "60"))
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "UTC")

# Frontend origins allowed by CORS (comma separated)
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
