"""FastAPI application factory."""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from staybook.infra.config import Settings
from staybook.infra.repositories.memory_store import InMemoryBookingStore
from staybook.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from staybook.observability.logging import get_logger
from staybook.services.booking_service import (
    BookingNotFoundError,
    BookingRejectedError,
    DuplicateBookingError,
)

from .routers import public
from .routes import bookings

REJECTION_CODE_HEADER = "X-Rejection-Code"

logger = get_logger(__name__)


def _rejection(message: str, code: str) -> JSONResponse:
    # Body is a bare JSON string: clients compare it verbatim.
    return JSONResponse(
        status_code=400,
        content=message,
        headers={REJECTION_CODE_HEADER: code},
    )


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingRejectedError)
    async def booking_rejected(request: Request, exc: BookingRejectedError) -> JSONResponse:
        return _rejection(exc.outcome.reason, exc.outcome.code.value)

    @app.exception_handler(BookingNotFoundError)
    async def booking_not_found(request: Request, exc: BookingNotFoundError) -> JSONResponse:
        return _rejection(exc.message, "booking_not_found")

    @app.exception_handler(DuplicateBookingError)
    async def duplicate_booking(request: Request, exc: DuplicateBookingError) -> JSONResponse:
        return _rejection(exc.message, "duplicate_booking")

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if not errors:
            return _rejection("Invalid booking request", "invalid_request")
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        logger.info(
            "invalid booking request",
            extra={"extra_fields": {"field": field, "error_type": first.get("type")}},
        )
        message = f"Invalid booking request: {field}: {first.get('msg')}" if field else (
            f"Invalid booking request: {first.get('msg')}"
        )
        return _rejection(message, "invalid_request")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI app.

    Args:
        settings: Explicit settings. If None, read from the environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings.from_env()

    app = FastAPI(
        title="Staybook",
        docs_url=None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.memory_store = InMemoryBookingStore() if settings.store == "memory" else None

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    _register_error_handlers(app)

    app.include_router(public.router)
    app.include_router(bookings.router)

    return app
