# wabridge/core/config.py
"""
Application configuration - loads from environment variables.
Single source of truth for all settings.
"""
import os
from typing import Optional
from urllib.parse import quote_plus
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables FIRST
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_path = BASE_DIR / '.env'
load_dotenv(dotenv_path=env_path)

# ────────────────────────────────────────────
# Baileys Gateway Defaults
# ────────────────────────────────────────────
# Used when a channel's provider_config has no provider_url / api_key of its own
BAILEYS_PROVIDER_DEFAULT_URL: Optional[str] = os.getenv("BAILEYS_PROVIDER_DEFAULT_URL")
BAILEYS_PROVIDER_DEFAULT_API_KEY: Optional[str] = os.getenv("BAILEYS_PROVIDER_DEFAULT_API_KEY")
BAILEYS_PROVIDER_DEFAULT_CLIENT_NAME: Optional[str] = os.getenv("BAILEYS_PROVIDER_DEFAULT_CLIENT_NAME")

# ────────────────────────────────────────────
# Z-API Defaults
# ────────────────────────────────────────────
ZAPI_PROVIDER_DEFAULT_URL: str = os.getenv("ZAPI_PROVIDER_DEFAULT_URL", "https://api.z-api.io")
ZAPI_CLIENT_TOKEN: Optional[str] = os.getenv("ZAPI_CLIENT_TOKEN")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# ────────────────────────────────────────────
# Tenant / Multi-tenant
# ────────────────────────────────────────────
DEFAULT_TENANT_ID: str = os.getenv("TENANT_ID") or os.getenv("DEFAULT_TENANT_ID") or "default"

# ────────────────────────────────────────────
# Database Configuration
# ────────────────────────────────────────────
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "wabridge_db")
DATABASE_URL = os.getenv("DATABASE_URL")

# Build DATABASE_URL
if not DATABASE_URL:
    encoded_password = quote_plus(DB_PASSWORD)
    DATABASE_URL = f"postgresql://{DB_USER}:{encoded_password}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
