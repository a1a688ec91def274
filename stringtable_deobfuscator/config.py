import logging
import os
import re
from dataclasses import dataclass

from .errors import ConfigurationError

LOG = logging.getLogger(__name__)

VIEWER_HOST_PATH = "VIEWER_HOST_PATH"
MARKER = "DEOBFUSCATOR_MARKER"
MAX_ITERATIONS = "DEOBFUSCATOR_MAX_ITERATIONS"

DEFAULT_MARKER = "_0x"
DEFAULT_MAX_ITERATIONS = 10

WINDOWS_DRIVE_REGEX = re.compile(r"^[a-zA-Z]:\\")


@dataclass(frozen=True)
class Settings:
    viewer_host_path: str = ""
    marker: str = DEFAULT_MARKER
    max_iterations: int = DEFAULT_MAX_ITERATIONS


def load_settings(environ=None):
    environ = os.environ if environ is None else environ

    viewer_host_path = environ.get(VIEWER_HOST_PATH, "")
    if not viewer_host_path:
        raise ConfigurationError(f"{VIEWER_HOST_PATH} environment variable not set.")
    if not viewer_host_path.startswith("/") and not WINDOWS_DRIVE_REGEX.match(viewer_host_path):
        LOG.warning(
            '%s ("%s") might not be an absolute path. Ensure it is correct on your host.',
            VIEWER_HOST_PATH, viewer_host_path,
        )

    raw_iterations = environ.get(MAX_ITERATIONS, "")
    max_iterations = DEFAULT_MAX_ITERATIONS
    if raw_iterations:
        try:
            max_iterations = int(raw_iterations)
        except ValueError:
            raise ConfigurationError(f"{MAX_ITERATIONS} must be an integer, got {raw_iterations!r}.") from None
        if max_iterations < 1:
            raise ConfigurationError(f"{MAX_ITERATIONS} must be positive, got {max_iterations}.")

    return Settings(
        viewer_host_path=viewer_host_path,
        marker=environ.get(MARKER) or DEFAULT_MARKER,
        max_iterations=max_iterations,
    )
