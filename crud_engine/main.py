import logging
from typing import Iterable

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from crud_engine.core.config import settings
from crud_engine.core.http import install_http_handlers


def create_app(resources: Iterable[tuple[str, APIRouter]] = ()) -> FastAPI:
    """Build the application; ``resources`` are ``(prefix, router)`` pairs to mount."""
    logging.getLogger("crud_engine").setLevel(settings.LOG_LEVEL.upper())

    app = FastAPI(title=settings.APP_NAME, version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_http_handlers(app)

    for prefix, router in resources:
        app.include_router(router, prefix=prefix)

    @app.get("/", include_in_schema=False)
    def landing():
        return JSONResponse({"service": settings.APP_NAME, "status": "ok"})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
