"""ZenTime: meditation countdown and box-breathing timers."""

import logging

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
