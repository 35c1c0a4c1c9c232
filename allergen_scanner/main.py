import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from allergen_scanner.logging import configure_logging
from allergen_scanner.config import settings
from allergen_scanner.errors import ScanError
from allergen_scanner.middleware.request_id import RequestIdMiddleware

from allergen_scanner.api.error_handlers import (
    http_exception_handler,
    scan_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from allergen_scanner.api.health import router as health_router
from allergen_scanner.api.routes_allergens import router as allergens_router
from allergen_scanner.api.routes_history import router as history_router
from allergen_scanner.api.routes_scan import router as scan_router


def create_app() -> FastAPI:
    configure_logging()
    logger = logging.getLogger(__name__)

    app = FastAPI(title=settings.app_name)

    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ScanError, scan_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(scan_router)
    app.include_router(allergens_router)
    app.include_router(history_router)

    logger.info("App initialized provider=%s", settings.vlm_provider)
    return app


app = create_app()
