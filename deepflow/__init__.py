"""DeepFlow: AI suggestion orchestration for a plain-text writing editor."""

import logging

__version__ = "0.4.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
