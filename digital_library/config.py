"""
Configuration module for environment variables and application settings.
Centralized settings for database, security, storage, and application behavior.
"""

import os
import secrets
from typing import Dict, List
from urllib.parse import urlparse

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

#---Constants---

DEFAULT_ENVIRONMENT = "production"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_VERSION = "1.0.0"

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

#---Database Configuration---
DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is required")

parsed_url = urlparse(DATABASE_URL)

#---Extract query params---
query_params: Dict[str, str] = {}
if parsed_url.query:
    query_params = dict(
        param.split("=", 1) for param in parsed_url.query.split("&") if "=" in param
    )

#---Handle sslmode separately---
ssl_mode: str = query_params.pop("sslmode", "prefer")
if parsed_url.hostname in {"localhost", "127.0.0.1"}:
    ssl_mode = "prefer"

#---Reconstruct DB URL without sslmode (untouched if it had none)---
clean_url = DATABASE_URL
if "sslmode=" in parsed_url.query:
    new_query = "&".join([f"{k}={v}" for k, v in query_params.items()])
    clean_url = parsed_url._replace(query=new_query).geturl()

#---Ensure async driver for Postgres; other async URLs pass through---
if clean_url.startswith("postgres://"):
    clean_url = clean_url.replace("postgres://", "postgresql+asyncpg://", 1)
elif clean_url.startswith("postgresql://"):
    clean_url = clean_url.replace("postgresql://", "postgresql+asyncpg://", 1)

SQLALCHEMY_DATABASE_URL = clean_url
SSL_MODE = ssl_mode

#---SQLAlchemy engine settings---
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 5))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 10))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", 30))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", 1800))
STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", 15000))

# Transactions held longer than this are logged with their last statement
SLOW_TRANSACTION_SECONDS = float(os.getenv("SLOW_TRANSACTION_SECONDS", 5))

#---Application Settings---

ENVIRONMENT = os.getenv("ENVIRONMENT", DEFAULT_ENVIRONMENT)
DEBUG: bool = ENVIRONMENT == "development"
LOG_LEVEL = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
LOG_DIR = os.getenv("LOG_DIR")
VERSION = os.getenv("APP_VERSION", DEFAULT_VERSION)

#---Security / JWT Configuration---
ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", secrets.token_urlsafe(32))
REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", secrets.token_urlsafe(32))
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 15))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", 7))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

if ACCESS_TOKEN_SECRET == REFRESH_TOKEN_SECRET:
    raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ")

#---Document storage---
STORAGE_ROOT = os.path.abspath(os.getenv("STORAGE_ROOT", os.getcwd()))

#---CORS / Origins---
ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS",
        "http://localhost:3000,http://localhost:5173,"
        "http://127.0.0.1:3000,http://127.0.0.1:5173",
    ).split(",")
    if origin.strip()
]
