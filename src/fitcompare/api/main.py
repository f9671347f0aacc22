"""FastAPI application factory."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fitcompare.db.engine import get_engine
from fitcompare.api.routes import account, datasets, shared


def create_app() -> FastAPI:
    """Build and return the FastAPI app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Creates tables on first use (idempotent)
        get_engine()
        yield

    app = FastAPI(
        title="FIT Compare API",
        description="Upload, compare and share cycling .fit files",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(datasets.router, prefix="/datasets", tags=["datasets"])
    app.include_router(shared.router, prefix="/shared", tags=["shared"])
    app.include_router(account.router, prefix="/me", tags=["account"])

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "ok"}

    return app


# Module-level app instance for uvicorn
app = create_app()
