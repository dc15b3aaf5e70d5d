from .app.main import review, extract, list_rules

__all__ = [
    "review",
    "extract",
    "list_rules",
]

# stdlib logging defaults: attach NullHandler to prevent 'No handler' warnings
import logging
_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())
