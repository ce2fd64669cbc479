from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from viralbites import __version__
from viralbites.api.routes import auth, diagnostics, search
from viralbites.config import Settings, load_settings
from viralbites.discovery.diagnostics import DiagnosticsRunner
from viralbites.discovery.gemini_client import GeminiClient
from viralbites.discovery.pipeline import ViralSearchPipeline
from viralbites.oauth.providers import OAuthClient

logger = structlog.get_logger()


def create_app(
    settings: Settings | None = None,
    pipeline: ViralSearchPipeline | None = None,
    diagnostics_runner: DiagnosticsRunner | None = None,
    oauth_client: OAuthClient | None = None,
) -> FastAPI:
    """
    Build the API with its collaborators wired in.

    Anything not passed is constructed from settings; settings default to the
    environment.
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("Starting ViralBites...", discovery_model=settings.discovery_model)
        yield
        # Shutdown
        logger.info("Shutting down ViralBites...")

    app = FastAPI(
        title="ViralBites",
        description="Find food places trending on short-form video near you",
        version=__version__,
        lifespan=lifespan,
    )

    client = None
    if pipeline is None or diagnostics_runner is None:
        client = GeminiClient(settings)

    app.state.settings = settings
    app.state.pipeline = pipeline or ViralSearchPipeline(settings, client=client)
    app.state.diagnostics = diagnostics_runner or DiagnosticsRunner(settings, client=client)
    app.state.oauth_client = oauth_client or OAuthClient(settings)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(search.router, prefix="/api/search", tags=["search"])
    app.include_router(diagnostics.router, prefix="/api/diagnostics", tags=["diagnostics"])
    app.include_router(auth.router, prefix="/auth", tags=["auth"])

    @app.get("/")
    async def root():
        return {"message": "ViralBites API", "version": __version__}

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "serverTime": datetime.now(timezone.utc).isoformat(),
        }

    return app


if __name__ == "__main__":
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "viralbites.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
    )
