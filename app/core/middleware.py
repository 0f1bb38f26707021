from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from app.config.settings import settings
import time
import logging

logger = logging.getLogger(__name__)

# Encabezados que envía el frontend (X-OTP-Token en eliminaciones con modo seguro)
ALLOWED_HEADERS = [
    "Authorization",
    "Content-Type",
    "Accept",
    "Origin",
    "X-Requested-With",
    "X-OTP-Token",
]


def setup_middleware(app: FastAPI):
    """CORS para el frontend y log de cada request con su duración"""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=ALLOWED_HEADERS,
        expose_headers=["X-Process-Time"],
        max_age=3600
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"{request.method} {request.url.path} - error no controlado")
            raise

        elapsed = time.perf_counter() - start
        log = logger.warning if response.status_code >= 500 else logger.info
        log(f"{request.method} {request.url.path} - {response.status_code} - {elapsed:.4f}s")
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        return response
