"""
Logging configuration for EventPump.
"""

import logging
import os
import sys
from datetime import datetime
from utils.constants import __version__


def setup_logging(log_dir="logs", level=logging.INFO):
    """
    Configure logging to file and console.

    Args:
        log_dir: Directory that receives the log file
        level: Root logger level

    Returns:
        str: Path to the current log file
    """
    # Create logs directory if it doesn't exist
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    # Create log filename with timestamp
    log_filename = os.path.join(
        log_dir,
        f"eventpump_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    )

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_filename, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ],
        force=True,
    )

    logging.info("=" * 80)
    logging.info(f"EventPump v{__version__} - Session Started")
    logging.info("=" * 80)

    return log_filename
