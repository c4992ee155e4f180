"""
Main FastAPI application for the patientql service
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import settings
from ..database import Database
from ..errors import StartupError
from ..logging import configure_logging, get_logger
from ..middleware import LoggingContextMiddleware
from ..repository import PatientRepository

# Configure logging before creating logger
configure_logging(debug=settings.debug, log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Owns the database handle: builds it (unless one was injected through
    ``create_app``), checks connectivity and disposes it on shutdown. A
    failed connectivity check aborts startup.
    """
    logger.info("Starting patientql API...")

    database: Database | None = getattr(app.state, "database", None)
    if database is None:
        database = Database.from_settings(settings)

    success, error_message = await database.test_connection()
    if not success:
        logger.error("Database connection validation failed", error=error_message)
        await database.dispose()
        raise StartupError(error_message or "Database connection failed")

    app.state.database = database
    app.state.repository = PatientRepository(database)
    logger.info("Database initialized", database=database.url.database)

    yield

    logger.info("Shutting down patientql API...")
    await database.dispose()


def create_app(database: Database | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="patientql",
        description="GraphQL API over the patients table",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    if database is not None:
        app.state.database = database

    app.add_middleware(LoggingContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():  # pyright: ignore [reportUnusedFunction]
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    try:
        from ..graphql.schema import create_graphql_router, validate_schema

        # Validate schema at startup so a broken schema never serves traffic
        logger.info("Validating GraphQL schema...")
        validate_schema()

        app.include_router(create_graphql_router(), prefix="")
        logger.info("GraphQL endpoint initialized successfully", endpoint="/graphql")
    except Exception as e:  # pragma: no cover
        logger.error("Failed to initialize GraphQL endpoint", error=str(e))
        raise StartupError(f"GraphQL schema is invalid: {e}") from e

    from .endpoints import patient

    app.include_router(patient.router, tags=["Patients"])

    return app


# Create the main application instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "patientql.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
