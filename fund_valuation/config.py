"""Application configuration."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
DB_PATH = BASE_DIR / "data" / "fund_valuation.db"
DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite+aiosqlite:///{DB_PATH}"

# Cache settings (in-memory)
STOCK_CACHE_TTL = int(os.getenv("STOCK_CACHE_TTL", "60"))  # seconds

# Market data settings
MARKET_DATA_INTERVAL = int(os.getenv("MARKET_DATA_INTERVAL", "30"))  # seconds between quote refreshes
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))  # seconds per upstream call

# Valuation settings
RELIABLE_COVERAGE = float(os.getenv("RELIABLE_COVERAGE", "50"))  # percentage points
REPORT_TOP_N = int(os.getenv("REPORT_TOP_N", "10"))
DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "Asia/Shanghai")

# Ensure data directory exists (only needed for local SQLite, skip if DATABASE_URL is overridden)
if not os.getenv("DATABASE_URL"):
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
