"""
main.py

This is the main entry point of the FastAPI application.
Here we create the FastAPI app and register all API routes.

This file does NOT contain business logic.
It only wires everything together.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Import API routers
from bula_service.api.bula import router as bula_router
from bula_service.api.health import router as health_router
from bula_service.config import LOG_LEVEL
from bula_service.errors import BulaServiceError

logger = logging.getLogger(__name__)


async def bula_error_handler(request: Request, error: BulaServiceError) -> JSONResponse:
    """
    Turn pipeline errors into HTTP responses.

    Body format matches HTTPException: {"detail": {"code": ..., "message": ...}}
    """

    if error.status_code >= 500:
        logger.error(f"{request.url.path} failed ({error.code}): {error.message}")
    else:
        logger.info(f"{request.url.path} rejected ({error.code}): {error.message}")

    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.to_detail()}
    )


def create_app() -> FastAPI:
    """
    Creates and returns the FastAPI application instance.
    This function helps keep the app creation clean and testable.
    """
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    app = FastAPI(
        title="Bula Service",
        description="Identifies a medicine from a package photo and returns its leaflet summary",
        version="1.0.0"
    )

    # Register API routes
    app.include_router(health_router, prefix="/health", tags=["Health"])
    app.include_router(bula_router, prefix="/bula", tags=["Bula"])

    # Pipeline errors raised by routes or by dependencies
    app.add_exception_handler(BulaServiceError, bula_error_handler)

    return app


# Create the FastAPI app instance
app = create_app()
