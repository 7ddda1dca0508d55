"""chunkup client entry point."""

import sys
import os

from common.logging_config import setup_logging
from upload_client.repl import repl_loop


def main() -> None:
    """Entry point for the chunkup REPL."""
    log_level = 'DEBUG' if '--debug' in sys.argv else os.getenv('LOG_LEVEL', 'WARNING')

    logger = setup_logging('upload_client', log_level=log_level)

    if '--debug' in sys.argv:
        logger.info("Debug logging enabled")
        sys.argv.remove('--debug')

    logger.info("chunkup starting...")
    try:
        repl_loop()
    except Exception as e:
        logger.error(f"chunkup error: {e}", exc_info=True)
        raise
    finally:
        logger.info("chunkup exiting")


if __name__ == "__main__":
    main()
