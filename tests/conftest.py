import logging

import pytest

from stringtable_deobfuscator.log import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo ``log.configure`` so caplog keeps seeing the package's records."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_deobfuscator_handler", False):
            logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
