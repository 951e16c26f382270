"""FastAPI server exposing tracker state to the Mini App front-end."""

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from betstreak import __version__
from betstreak.config import Settings, get_settings
from betstreak.scheduler import BetCheckPoller
from betstreak.services.stake import StakeError, UserNotFound
from betstreak.storage import StorageUnavailable
from betstreak.tracker import BetStreakTracker, open_tracker

logger = logging.getLogger(__name__)


def _error_response(
    message: str,
    error: Exception | None = None,
    status_code: int = 500,
) -> JSONResponse:
    content: dict[str, Any] = {"message": message}
    if error is not None:
        content["details"] = str(error)
    return JSONResponse(status_code=status_code, content=content)


def get_tracker(request: Request) -> BetStreakTracker:
    return request.app.state.tracker


def create_app(
    settings: Settings | None = None,
    tracker: BetStreakTracker | None = None,
) -> FastAPI:
    """Build the API app. A given tracker is used as-is; otherwise one is opened from settings."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with AsyncExitStack() as stack:
            if tracker is not None:
                app.state.tracker = tracker
            else:
                logger.info(f"Starting Betstreak API (state file: {settings.state_path})")
                app.state.tracker = await stack.enter_async_context(
                    open_tracker(settings)
                )

            app.state.poller = None
            if settings.scheduler.poll_in_server:
                poller = BetCheckPoller(
                    app.state.tracker, settings.scheduler.check_interval_seconds
                )
                poller.start()
                stack.callback(poller.stop)
                app.state.poller = poller

            yield
        logger.info("Betstreak API shut down")

    app = FastAPI(
        title="Betstreak API",
        description="Streak and history tracking for Stake bets",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials="*" not in settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error in {request.url.path}: {exc}", exc_info=True)
        return _error_response("Internal server error.", exc)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": "betstreak-api",
            "version": __version__,
        }

    @app.get("/api/status")
    async def get_status(request: Request):
        """Return the full tracker state document."""
        try:
            state = await get_tracker(request).get_status()
        except StorageUnavailable as e:
            logger.error(f"Error in /api/status: {e}")
            return _error_response("Failed to load status.", e)
        return state.to_document()

    @app.get("/api/check-new-bet")
    async def check_new_bet(request: Request):
        """Poll Stake for the latest bet and record it if new."""
        try:
            result = await get_tracker(request).check_for_new_bet()
        except (StorageUnavailable, StakeError) as e:
            logger.error(f"Error in /api/check-new-bet: {e}")
            return _error_response("Failed to check for new bet.", e)
        return result.to_api()

    @app.get("/api/user-profile")
    async def user_profile(request: Request):
        """Return the Stake user's name, avatar and USDT balance."""
        try:
            profile = await get_tracker(request).get_user_profile()
        except UserNotFound as e:
            logger.warning(f"Error in /api/user-profile: {e}")
            return _error_response("User not found.", status_code=404)
        except StakeError as e:
            logger.error(f"Error in /api/user-profile: {e}")
            return _error_response("Failed to fetch user profile.", e)
        return profile.to_api()

    @app.get("/api/bet-history")
    async def bet_history(request: Request):
        """Return recorded bets, most recent first."""
        try:
            history = await get_tracker(request).get_history()
        except StorageUnavailable as e:
            logger.error(f"Error in /api/bet-history: {e}")
            return _error_response("Failed to load bet history.", e)
        return [bet.to_api() for bet in history]

    return app


def run_server(settings: Settings) -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    from betstreak.observability import initialize_logfire

    app = create_app(settings)
    initialize_logfire(settings, app)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="info",
    )
