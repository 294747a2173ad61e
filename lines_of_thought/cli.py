"""
Lines of Thought CLI
Command-line interface for starting the server or bootstrapping the Neo4j schema
"""

import argparse
import logging
import sys

import uvicorn

from lines_of_thought.config.settings import settings

logger = logging.getLogger(__name__)


def init_schema() -> int:
    """Create indexes and report whether the schema is complete."""
    from lines_of_thought.config.neo4j_config import initialize_neo4j_schema, neo4j_config

    try:
        result = initialize_neo4j_schema()
    finally:
        neo4j_config.close()

    logger.info(f"Indexes: {', '.join(result['indexes']) or 'none'}")
    if not result["schema_ready"]:
        logger.error("Schema incomplete")
        return 1
    logger.info("Schema ready")
    return 0


def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(description="Lines of Thought - Branching thought graph server")
    parser.add_argument("--host", default=settings.HOST, help=f"Host to bind (default: {settings.HOST})")
    parser.add_argument("--port", type=int, default=settings.PORT, help=f"Port to bind (default: {settings.PORT})")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL.lower(),
                        choices=["debug", "info", "warning", "error"], help="Log level")
    parser.add_argument("--init-schema", action="store_true",
                        help="Create the Neo4j indexes and exit")

    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format=settings.LOG_FORMAT)

    if args.init_schema:
        sys.exit(init_schema())

    logger.info(f"Starting Lines of Thought on {args.host}:{args.port}")

    uvicorn.run(
        "lines_of_thought.app_factory:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level
    )


if __name__ == "__main__":
    main()
