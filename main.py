"""
Prayer Timeline — Entry Point.

Single entry point: `python main.py [--month YYYY-MM]` prints the timeline.
"""

import logging
import sys

from prayer_timeline.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from prayer_timeline.cli import main

if __name__ == "__main__":
    sys.exit(main())
