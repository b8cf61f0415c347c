from fastapi import APIRouter
from fastapi.responses import JSONResponse

from gymdesk.services.core_service import CoreError, health_core


router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health_root():
    return {"ok": True}


@router.get("/supabase")
def health_supabase():
    try:
        res = health_core()
    except CoreError as e:
        return JSONResponse(status_code=503, content={"ok": False, "error": e.message})
    return JSONResponse(content=res, status_code=200 if res.get("ok") else 503)
