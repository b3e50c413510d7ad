import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_feed_hub_logger():
    """setup_logging detaches the package logger from root; undo it between tests."""
    yield
    logger = logging.getLogger("feed_hub")
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
