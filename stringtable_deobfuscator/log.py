import logging
import sys

LOGGER_NAME = "stringtable_deobfuscator"

# Console markers of the command-line tool
MARKERS = {
    logging.DEBUG: "[-]",
    logging.INFO: "[*]",
    logging.WARNING: "[!]",
    logging.ERROR: "[!]",
    logging.CRITICAL: "[!]",
}


class MarkerFormatter(logging.Formatter):
    def format(self, record):
        marker = MARKERS.get(record.levelno, "[!]")
        return f"{marker} {super().format(record)}"


def configure(verbose=False, stream=None):
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in logger.handlers:
        if getattr(handler, "_deobfuscator_handler", False):
            handler.setStream(stream or sys.stderr)
            return logger

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(MarkerFormatter("%(message)s"))
    handler._deobfuscator_handler = True
    logger.addHandler(handler)
    logger.propagate = False
    return logger
