"""Entry point for running the unified MCP and REST API server."""

import uvicorn

from transcript_server.config import get_config
from transcript_server.registry.tool_registry import register_all_tools
from transcript_server.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def main() -> None:
    """Entry point for running the unified server."""
    config = get_config()
    configure_logging(config.log_level)

    # Register tools before the server app is imported so the FastMCP shims find them
    registry = register_all_tools()
    logger.info("Tools registered.", tool_count=len(registry.get_registered_tool_names()))

    logger.info("Starting unified server", host=config.server_host, port=config.mcp_port)

    uvicorn.run(
        "transcript_server.server:app",
        host=config.server_host,
        port=config.mcp_port,
        log_config=None,  # Use our custom structlog configuration
        access_log=False,
    )


if __name__ == "__main__":
    main()
