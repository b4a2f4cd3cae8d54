"""Configuration and settings."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(os.getenv("RXRETURNS_HOME", Path(__file__).resolve().parent.parent.parent))
DATA_DIR = PROJECT_ROOT / "data"
OUTPUT_DIR = PROJECT_ROOT / "output"

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR / 'rxreturns.sqlite'}")
SEED_ON_INIT = os.getenv("SEED_ON_INIT", "true").lower() == "true"

# Logging
LOG_DIR = OUTPUT_DIR / "logs"
LOG_FILE = LOG_DIR / "app.jsonl"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
VERBOSE_LOGGING = os.getenv("VERBOSE_LOGGING", "false").lower() == "true"

# Ensure log directory exists
LOG_DIR.mkdir(parents=True, exist_ok=True)

# OpenTelemetry
TRACING_ENABLED = os.getenv("TRACING_ENABLED", "false").lower() == "true"
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "http://localhost:4318/v1/traces")
OTLP_API_KEY = os.getenv("OTLP_API_KEY", "")
SERVICE_NAME = os.getenv("SERVICE_NAME", "rxreturns")
DEPLOYMENT_ENVIRONMENT = os.getenv("DEPLOYMENT_ENVIRONMENT", "development")

# Auth (pharmacy tokens are issued by the identity provider; we only verify them)
JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ADMIN_JWT_SECRET = os.getenv("ADMIN_JWT_SECRET", "")
TOKEN_TTL_MINUTES = int(os.getenv("TOKEN_TTL_MINUTES", "60"))

# API server
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Platform commission, percent of gross
COMMISSION_RATE = float(os.getenv("COMMISSION_RATE", "5"))

# Batch credit-estimate fees
SERVICE_FEE_PERCENT = float(os.getenv("SERVICE_FEE_PERCENT", "3"))
SERVICE_FEE_MIN = float(os.getenv("SERVICE_FEE_MIN", "25"))
SERVICE_FEE_MAX = float(os.getenv("SERVICE_FEE_MAX", "500"))
TRANSPORT_FEE_BASE = float(os.getenv("TRANSPORT_FEE_BASE", "15"))
TRANSPORT_FEE_PER_ITEM = float(os.getenv("TRANSPORT_FEE_PER_ITEM", "0.5"))

# Product / inventory defaults
DEFAULT_RETURN_WINDOW_DAYS = int(os.getenv("DEFAULT_RETURN_WINDOW_DAYS", "365"))
EXPIRING_SOON_DAYS = int(os.getenv("EXPIRING_SOON_DAYS", "180"))


@dataclass(frozen=True)
class FeeSchedule:
    """Fee constants applied once per credit-estimate batch."""

    service_fee_percent: float = 3.0
    service_fee_min: float = 25.0
    service_fee_max: float = 500.0
    transport_fee_base: float = 15.0
    transport_fee_per_item: float = 0.5


def default_fee_schedule() -> FeeSchedule:
    return FeeSchedule(
        service_fee_percent=SERVICE_FEE_PERCENT,
        service_fee_min=SERVICE_FEE_MIN,
        service_fee_max=SERVICE_FEE_MAX,
        transport_fee_base=TRANSPORT_FEE_BASE,
        transport_fee_per_item=TRANSPORT_FEE_PER_ITEM,
    )
