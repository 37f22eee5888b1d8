"""FastAPI application entrypoint."""

import os

from fastapi import FastAPI
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response

from evangelist.pipeline.rasterize import get_rasterizer
from evangelist.routers.convert import router as convert_router
from evangelist.settings import settings
from evangelist.storage import ensure_dir

app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

_PUBLIC_PATHS = {
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/favicon.ico",
}


@app.middleware("http")
async def enforce_api_key(request: Request, call_next):
    if request.method == "OPTIONS":
        return await call_next(request)

    if request.url.path in _PUBLIC_PATHS:
        return await call_next(request)

    expected_api_key = os.getenv("BACKEND_API_KEY", "").strip()
    if expected_api_key:
        received_api_key = request.headers.get("X-API-Key", "")
        if received_api_key != expected_api_key:
            return JSONResponse(status_code=401, content={"detail": "Unauthorized"})

    return await call_next(request)

app.include_router(convert_router)


@app.on_event("startup")
def on_startup() -> None:
    ensure_dir(settings.data_path)


@app.get("/health", tags=["meta"])
def health() -> dict[str, bool | str]:
    try:
        rasterizer_available = get_rasterizer().available()
    except (RuntimeError, ValueError):
        rasterizer_available = False
    return {
        "ok": True,
        "storage_backend": settings.storage_backend.lower().strip(),
        "rasterizer": settings.rasterizer,
        "rasterizer_available": rasterizer_available,
    }


@app.options("/{path:path}", include_in_schema=False)
async def preflight(path: str) -> Response:
    del path
    return Response(status_code=204)
