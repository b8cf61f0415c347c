import logging
from typing import Optional

from supabase import Client, create_client

from gymdesk.utils.settings import settings

log = logging.getLogger("gymdesk.db")


def get_supabase() -> Optional[Client]:
    if not (settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY):
        return None
    try:
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception:
        log.exception("Failed to create Supabase client")
        return None
