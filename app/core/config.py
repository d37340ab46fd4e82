import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()

class LeaveSettings(BaseModel):
    backfill_max_rows: int = Field(default=int(os.getenv("BACKFILL_MAX_ROWS", "500")))
    backfill_template_name: str = "leave-backfill-template.csv"

class Config(BaseModel):
    app_name: str = "HR Leave Accrual Service"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = os.getenv("API_PREFIX", "/api")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # CORS — comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    leave: LeaveSettings = LeaveSettings()

settings = Config()

# --- Startup Validation ---
_logger = logging.getLogger(__name__)
if settings.leave.backfill_max_rows <= 0:
    raise RuntimeError(
        f"FATAL: BACKFILL_MAX_ROWS must be a positive integer, got {settings.leave.backfill_max_rows}."
    )
if settings.environment != "development" and "*" in settings.cors_origins:
    _logger.warning("⚠ Wildcard CORS origin configured outside development.")
