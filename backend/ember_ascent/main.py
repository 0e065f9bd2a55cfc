"""
Ember Ascent - FastAPI Application
Main application entry point with middleware and route configuration
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ember_ascent.api.v1 import api_router
from ember_ascent.core.config import settings
from ember_ascent.core.database import init_db
from ember_ascent.core.exceptions import register_exception_handlers
from ember_ascent.core.logging_config import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    configure_logging()

    # Initialize OpenTelemetry for LLM and request tracing
    try:
        from ember_ascent.ai.core.telemetry import init_telemetry
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        init_telemetry()
        FastAPIInstrumentor.instrument_app(app)
        print("[Startup] OpenTelemetry initialized")
    except Exception as e:
        print(f"[Startup] Telemetry initialization skipped: {e}")

    # Initialize database tables
    await init_db()
    print("[Startup] Database tables initialized")

    yield

    # Shutdown
    pass


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="11+ exam preparation: practice analytics, AI explanations and admin tooling",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix=settings.API_PREFIX)

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ember_ascent.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
