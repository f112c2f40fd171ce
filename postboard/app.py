"""
FastAPI application entry point for the postboard service.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from postboard.config import get_settings
from postboard.errors import PostboardError
from postboard.routes import auth_router, posts_router, stores_router

logger = logging.getLogger(__name__)


async def handle_postboard_error(request: Request, exc: PostboardError) -> JSONResponse:
    logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    app = FastAPI(title="Postboard", version="0.1.0")
    app.add_exception_handler(PostboardError, handle_postboard_error)
    app.include_router(posts_router, prefix="/posts", tags=["posts"])
    app.include_router(stores_router, prefix=settings.api_prefix, tags=["stores"])
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    return app


app = create_app()
