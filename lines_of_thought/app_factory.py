"""
Lines of Thought Server - Branching thought graph with quality gating
Standalone microservice for building and navigating trees of thoughts

Architecture:
- Quality Gate: originality, moderation and argument-strength scoring
- Graph Store: Neo4j persistence of thoughts and branches
- Retrieval Engine: neighbor, batch and subgraph reads
- Ranking Engine: hybrid semantic + keyword search over root thoughts

Installation:
- Native installation (no Docker required)
- Uses local Neo4j, Redis and Ollama instances
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from lines_of_thought.config.neo4j_config import neo4j_config
from lines_of_thought.config.settings import settings, get_cors_config, is_development
from lines_of_thought.services.ollama_client import cleanup_ollama_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.APP_NAME} starting on port {settings.PORT}")
    yield
    await cleanup_ollama_manager()
    neo4j_config.close()
    logger.info(f"{settings.APP_NAME} stopped")


def create_app() -> FastAPI:
    """Create and configure the Lines of Thought application."""

    docs_enabled = is_development()
    app = FastAPI(
        title=settings.APP_NAME,
        description="Branching thought graph with duplicate detection, moderation and argument scoring",
        version=settings.APP_VERSION,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        lifespan=lifespan,
    )

    # CORS
    cors_config = get_cors_config()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_config["allow_origins"],
        allow_credentials=cors_config["allow_credentials"],
        allow_methods=cors_config["allow_methods"],
        allow_headers=cors_config["allow_headers"],
    )

    # Import routes (deferred to avoid circular imports)
    from lines_of_thought.api.errors import register_error_handlers
    from lines_of_thought.api.routes import branches, stats, thoughts

    # Register routes
    app.include_router(thoughts.router)
    app.include_router(branches.router)
    app.include_router(stats.router)
    register_error_handlers(app)

    @app.get("/")
    async def root():
        """Root endpoint - service information"""
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "description": "Branching thought graph with quality gating",
            "status": "operational",
            "endpoints": {
                "thoughts": "/api/thoughts",
                "search": "/api/thoughts/search",
                "batch_graph": "/api/graph/batch",
                "branches": "/api/branches",
                "provider_stats": "/api/stats/llm/providers",
                "health": "/health",
                "docs": "/docs" if docs_enabled else None,
            }
        }

    @app.get("/health")
    async def health():
        """Liveness check; component checks live at /api/thoughts/health"""
        return {
            "status": "ok",
            "service": "lines-of-thought-server",
            "version": settings.APP_VERSION,
        }

    logger.info(f"{settings.APP_NAME} initialized on port {settings.PORT}")
    return app

# Create app instance
app = create_app()
