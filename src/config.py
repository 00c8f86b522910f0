"""Configuration module for the CIRA ticketing service.

This module provides centralized configuration management, including directory
paths, API server settings, persistence backend selection, authentication and
email delivery settings. All configuration values can be overridden via
environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory (SQLite database and JSON store live here by default)
DATA_DIR_NAME = os.getenv("DATA_DIR_NAME", "data")
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# "development" or "production". Production refuses the log-only email channel.
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development").lower()

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,"
    "http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Persistence Configuration ---

# "sql" (SQLAlchemy, default) or "json" (single key-value JSON file)
STORE_BACKEND: str = os.getenv("STORE_BACKEND", "sql").lower()

DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR}/cira.db")

JSON_STORE_PATH: Path = Path(
    os.getenv("JSON_STORE_PATH", str(DATA_DIR / "cira_store.json"))
)

# --- Institution Configuration ---

# Signup only accepts addresses ending with this suffix
INSTITUTION_EMAIL_DOMAIN: str = os.getenv(
    "INSTITUTION_EMAIL_DOMAIN", "@plv.edu.ph"
).lower()

# --- Authentication Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24))
)

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Seeded on startup when both are set
BOOTSTRAP_ADMIN_EMAIL: Optional[str] = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
BOOTSTRAP_ADMIN_PASSWORD: Optional[str] = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")

# --- Verification Code Configuration ---

VERIFICATION_CODE_TTL_MINUTES: int = int(
    os.getenv("VERIFICATION_CODE_TTL_MINUTES", "15")
)
VERIFICATION_MAX_ATTEMPTS: int = int(os.getenv("VERIFICATION_MAX_ATTEMPTS", "5"))

# --- Email Delivery Configuration ---

# "smtp" delivers codes by email; "log" writes them to the application log
# and is only accepted outside production.
EMAIL_DELIVERY: str = os.getenv("EMAIL_DELIVERY", "log").lower()

SMTP_HOST: str = os.getenv("SMTP_HOST", "localhost")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER: Optional[str] = os.getenv("SMTP_USER")
SMTP_PASSWORD: Optional[str] = os.getenv("SMTP_PASSWORD")
SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
EMAIL_FROM: str = os.getenv("EMAIL_FROM", "no-reply@plv.edu.ph")

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
# "text" or "json"
LOG_FORMAT: str = os.getenv("LOG_FORMAT", "text").lower()
