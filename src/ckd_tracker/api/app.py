"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ckd_tracker.api.subjects import router as subjects_router
from ckd_tracker.app_logging import configure_logging
from ckd_tracker.config import parse_subject_ids
from ckd_tracker.containers import AppContainer
from ckd_tracker.errors import (
    AggregationWriteError,
    EventValidationError,
    InvalidRangeError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    app = FastAPI(title="CKD treatment summaries")
    app.state.container = container
    app.state.allowed_subject_ids = parse_subject_ids(
        container.settings.allowed_subject_ids
    )

    app.include_router(subjects_router)

    @app.exception_handler(EventValidationError)
    async def handle_invalid_event(
        request: Request, exc: EventValidationError
    ) -> JSONResponse:
        logger.info("Rejected event on %s: %s", request.url.path, exc.message)
        return JSONResponse(status_code=422, content=exc.to_dict())

    @app.exception_handler(InvalidRangeError)
    async def handle_invalid_range(
        request: Request, exc: InvalidRangeError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content=exc.to_dict()
        )

    @app.exception_handler(AggregationWriteError)
    async def handle_write_failure(
        request: Request, exc: AggregationWriteError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=exc.to_dict()
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
