from typing import Any, Dict, Optional

from fastapi import Request

from gymdesk.db import get_supabase


class CoreError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InvalidInput(CoreError):
    def __init__(self, message: str):
        super().__init__(message, 400)


class Unauthorized(CoreError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, 401)


def require_supabase():
    supabase = get_supabase()
    if not supabase:
        raise CoreError("Supabase client unavailable", 500)
    return supabase


def _bearer_token(request: Request) -> str:
    auth = request.headers.get("Authorization")
    if not auth or not auth.lower().startswith("bearer "):
        raise Unauthorized("Missing or invalid Authorization header")
    token = auth.split(" ", 1)[1].strip()
    if not token:
        raise Unauthorized("Missing or invalid Authorization header")
    return token


def _metadata_str(metadata: Dict[str, Any], key: str) -> Optional[str]:
    value = metadata.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def resolve_session_user(request: Request, supabase=None) -> Dict[str, Optional[str]]:
    """
    Resolves the caller from the Supabase access token.

    Tenant and branch scoping live in the auth user's metadata
    (gym_id / branch_id / role), set when the account was provisioned.
    """
    token = _bearer_token(request)
    supabase = supabase or require_supabase()

    try:
        res = supabase.auth.get_user(token)
        user = res.user if res else None
    except Exception:
        raise Unauthorized("Invalid or expired token")

    if not user or not getattr(user, "id", None):
        raise Unauthorized("Unable to resolve user identity")

    metadata = getattr(user, "user_metadata", None) or {}
    return {
        "id": str(user.id),
        "email": getattr(user, "email", None),
        "role": _metadata_str(metadata, "role"),
        "gym_id": _metadata_str(metadata, "gym_id"),
        "branch_id": _metadata_str(metadata, "branch_id"),
    }


def health_core(supabase=None):
    supabase = supabase or require_supabase()
    checks = {}

    for table in ("branches", "members", "payments"):
        try:
            supabase.table(table).select("id").limit(1).execute()
            checks[table] = True
        except Exception:
            checks[table] = False

    return {
        "ok": all(checks.values()),
        "checks": checks,
    }
