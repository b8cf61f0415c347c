from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def error(message: str, status: int = 400, **extra):
    return JSONResponse(
        status_code=status,
        content=jsonable_encoder({"error": message, **extra}),
    )
