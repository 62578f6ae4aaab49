"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from user_directory.api.schemas import ErrorPayload, UserPayload
from user_directory.api.users import router as users_router
from user_directory.app_logging import configure_logging
from user_directory.containers import AppContainer
from user_directory.domain.errors import FetchError, StorageError, UserNotFound

CONNECTION_ERROR_MESSAGE = "Connection error. Please check your network and try again."
SHOWING_SAVED_USERS_MESSAGE = "Connection error. Showing saved users."


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(users_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.exception_handler(FetchError)
    async def handle_fetch_error(request: Request, exc: FetchError) -> JSONResponse:
        state_container: AppContainer = request.app.state.container
        if not exc.network_related:
            logger.warning("Fetching users failed: %s", exc)
            payload = ErrorPayload(
                error=exc.kind,
                message=str(exc),
                network_error=False,
                dismissible=False,
            )
            return JSONResponse(
                payload.model_dump(mode="json"),
                status_code=status.HTTP_502_BAD_GATEWAY,
            )

        try:
            saved = await state_container.user_repository.get_saved_users()
        except StorageError:
            logger.exception("Failed to load saved users after a network error")
            saved = []
        payload = ErrorPayload(
            error=exc.kind,
            message=SHOWING_SAVED_USERS_MESSAGE if saved else CONNECTION_ERROR_MESSAGE,
            network_error=True,
            dismissible=True,
            users=[UserPayload.from_domain(user) for user in saved] or None,
        )
        return JSONResponse(
            payload.model_dump(mode="json"),
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
        status_code = (
            status.HTTP_404_NOT_FOUND
            if isinstance(exc, UserNotFound)
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("Storage failure: %s", exc)
        payload = ErrorPayload(
            error=exc.kind,
            message=str(exc),
            network_error=False,
            dismissible=False,
        )
        return JSONResponse(payload.model_dump(mode="json"), status_code=status_code)

    return app
