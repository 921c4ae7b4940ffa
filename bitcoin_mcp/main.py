"""Binance Bitcoin market data MCP server.

Serves the market data tools to an MCP host over stdio. Stdout carries the
protocol, so all logging goes to stderr.
"""

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from bitcoin_mcp.config import SystemConfig
from bitcoin_mcp.server.tools import SERVER_NAME, create_server

logger = logging.getLogger(__name__)

# Load .env file if it exists
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def main():
    """Main entry point for the MCP server."""
    try:
        system_config = SystemConfig.from_env()
        system_config.validate()
    except ValueError as e:
        setup_logging("INFO")
        logger.error(f"❌ Invalid configuration: {e}")
        sys.exit(1)

    setup_logging(system_config.log_level)
    logger.info(f"🚀 Starting {SERVER_NAME}...")
    logger.info(f"   - REST API: {system_config.rest_base_url}")
    logger.info(f"   - Stream: {system_config.stream_base_url}")
    logger.info(f"   - Max stream window: {system_config.max_stream_seconds:g}s")

    server = create_server(system_config)
    try:
        server.run(transport="stdio")
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        logger.info("✅ Server stopped")


if __name__ == "__main__":
    main()
