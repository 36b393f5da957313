"""Entry point for `python -m rize_mcp`."""

import logging
import os
import signal
import sys

from rize_mcp.config import ConfigError, load_config

logger = logging.getLogger("rize_mcp")


def _handle_sigterm(signum, frame) -> None:
    logger.info("Received SIGTERM, shutting down gracefully")
    sys.exit(0)


def main() -> None:
    # Logs go to stderr; stdout carries the stdio MCP stream.
    try:
        config = load_config()
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR, stream=sys.stderr)
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)

    logging.basicConfig(
        level=config.log_level.to_logging(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
    )
    signal.signal(signal.SIGTERM, _handle_sigterm)

    from rize_mcp.server import mcp

    transport = os.environ.get("MCP_TRANSPORT", "stdio")
    logger.info(f"Rize MCP server starting ({transport})")
    try:
        if transport == "stdio":
            mcp.run(transport="stdio")
        else:
            port = int(os.environ.get("PORT", "8000"))
            mcp.run(transport=transport, host="0.0.0.0", port=port)
    except KeyboardInterrupt:
        logger.info("Received SIGINT, shutting down gracefully")


if __name__ == "__main__":
    main()
