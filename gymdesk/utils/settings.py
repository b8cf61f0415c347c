import logging
import os
from datetime import timezone, tzinfo
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger("gymdesk.settings")


def is_enabled(flag: str, default: bool = False) -> bool:
    return (os.getenv(flag, str(default)) or "").lower() == "true"


def _csv(name: str) -> List[str]:
    raw = os.getenv(name, "") or ""
    return [x.strip() for x in raw.split(",") if x.strip()]


def _week_start(raw: str) -> int:
    # 0 = Monday ... 6 = Sunday, same numbering as date.weekday()
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return 0
    return value if 0 <= value <= 6 else 0


def _report_timezone(name: str) -> tzinfo:
    name = (name or "UTC").strip()
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning("Unknown DASHBOARD_TIMEZONE=%r, reporting in UTC", name)
        return timezone.utc


class Settings:
    def __init__(self) -> None:
        self.APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
        self.ENVIRONMENT = os.getenv("ENVIRONMENT", "production")

        self.SUPABASE_URL = os.getenv("SUPABASE_URL", "").strip()
        self.SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()

        self.CORS_MODE = os.getenv("CORS_MODE", "off")
        self.CORS_ALLOW_ORIGINS = _csv("CORS_ALLOW_ORIGINS")

        self.DASHBOARD_TIMEZONE = os.getenv("DASHBOARD_TIMEZONE", "UTC")
        self.REPORT_TZ = _report_timezone(self.DASHBOARD_TIMEZONE)
        self.DASHBOARD_WEEK_START = _week_start(os.getenv("DASHBOARD_WEEK_START", "0"))
        self.DASHBOARD_DEBUG = is_enabled("DASHBOARD_DEBUG", False)

    def report_timezone(self) -> tzinfo:
        return self.REPORT_TZ


settings = Settings()
