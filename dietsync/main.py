"""Main entry point for the Diet Sync API."""

import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from dietsync.api.routes import router as sync_router
from dietsync.config import get_settings

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s"
)


def create_app() -> FastAPI:
    """Build the FastAPI app serving the sync endpoints."""
    app = FastAPI(
        title="Diet Sync API",
        description="Per-user settings, meals, streaks and goals for Diet Sync clients",
        version="1.0.0",
    )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catches all unhandled exceptions and returns a generic 500 error."""
        logging.error(f"Unhandled exception for request {request.url}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal Server Error"},
        )

    app.include_router(sync_router)
    return app


api_app = create_app()


def run():
    """Entry point for running the API server."""
    settings = get_settings()
    print("Starting Diet Sync API...")
    print(f"API docs at http://localhost:{settings.api_port}/docs")
    uvicorn.run(api_app, host=settings.api_host, port=settings.api_port, log_level="info")


if __name__ == "__main__":
    run()
