# fabquote/core/config.py

import os
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

# =====================================================
# APPLICATION
# =====================================================
APP_ENV = os.getenv("APP_ENV")
if APP_ENV not in {"development", "staging", "production"}:
    raise ValueError("APP_ENV must be development | staging | production")

IS_PRODUCTION = APP_ENV == "production"

# empty means DEBUG in development, INFO elsewhere
LOG_LEVEL = os.getenv("LOG_LEVEL", "").upper() or None

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
MERCHANT_NAME = os.getenv("MERCHANT_NAME", "Miccroten Circuits")

# =====================================================
# DATABASE
# =====================================================
DB_TYPE = os.getenv("DB_TYPE")
if DB_TYPE not in {"postgres", "sqlite"}:
    raise ValueError("DB_TYPE must be postgres | sqlite")

if DB_TYPE == "postgres":
    DATABASE_URL = os.getenv("DATABASE_URL")
    if not DATABASE_URL:
        raise ValueError("DATABASE_URL is required for Postgres")

elif DB_TYPE == "sqlite":
    if IS_PRODUCTION:
        raise ValueError("SQLite is NOT allowed in production")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./fabquote.db")

# ---- Pool tuning (safe defaults) ----
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 10))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 20))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", 30))
DB_ECHO_POOL = os.getenv("DB_ECHO_POOL", "false").lower() == "true"

# ---- SSL ----
DB_SSL_VERIFY = os.getenv("DB_SSL_VERIFY", "true").lower() == "true"
if IS_PRODUCTION and not DB_SSL_VERIFY:
    logger.warning("Running in production with relaxed SSL verification")

# =====================================================
# IDENTITY PROVIDER
# =====================================================
IDP_JWT_SECRET = os.getenv("IDP_JWT_SECRET")
if not IDP_JWT_SECRET:
    raise ValueError("IDP_JWT_SECRET must be set")

IDP_JWT_ALGORITHM = os.getenv("IDP_JWT_ALGORITHM", "HS256")
IDP_JWT_AUDIENCE = os.getenv("IDP_JWT_AUDIENCE", "authenticated")

# The single operator identity allowed to price and progress quotations
STAFF_EMAIL = os.getenv("STAFF_EMAIL")
if not STAFF_EMAIL:
    raise ValueError("STAFF_EMAIL must be set")
STAFF_EMAIL = STAFF_EMAIL.strip().lower()

# =====================================================
# OBJECT STORE
# =====================================================
OBJECT_STORE_BACKEND = os.getenv("OBJECT_STORE_BACKEND", "local")
if OBJECT_STORE_BACKEND not in {"local", "supabase"}:
    raise ValueError("OBJECT_STORE_BACKEND must be local | supabase")

LOCAL_STORAGE_ROOT = os.getenv("LOCAL_STORAGE_ROOT", "./storage")
STORAGE_BUCKET = os.getenv("STORAGE_BUCKET", "file-storage")

SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")
if OBJECT_STORE_BACKEND == "supabase" and not (SUPABASE_URL and SUPABASE_SERVICE_KEY):
    raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required for the supabase object store")

# Signs download links for the local object store
SIGNED_URL_SECRET = os.getenv("SIGNED_URL_SECRET", IDP_JWT_SECRET)
SIGNED_URL_TTL_SECONDS = int(os.getenv("SIGNED_URL_TTL_SECONDS", 60))

ORPHAN_SWEEP_ENABLED = os.getenv("ORPHAN_SWEEP_ENABLED", "false").lower() == "true"
ORPHAN_SWEEP_MIN_AGE_MINUTES = int(os.getenv("ORPHAN_SWEEP_MIN_AGE_MINUTES", 1440))

# =====================================================
# PAYMENTS
# =====================================================
PAYMENT_VERIFY = os.getenv("PAYMENT_VERIFY", "none")
if PAYMENT_VERIFY not in {"none", "razorpay"}:
    raise ValueError("PAYMENT_VERIFY must be none | razorpay")

RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "")
if PAYMENT_VERIFY == "razorpay" and not (RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET):
    raise ValueError("RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET are required for razorpay verification")

EXTERNAL_HTTP_TIMEOUT_SECONDS = float(os.getenv("EXTERNAL_HTTP_TIMEOUT_SECONDS", 10))
