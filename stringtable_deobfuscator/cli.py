import argparse
import logging
import sys
from urllib.parse import quote

from . import log
from .config import VIEWER_HOST_PATH, load_settings
from .errors import ConfigurationError
from .pipeline import deobfuscate

LOG = logging.getLogger(__name__)

# Characters encodeURIComponent leaves alone besides letters and digits
URI_COMPONENT_SAFE = "-_.!~*'()"


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def build_parser():
    parser = ArgumentParser(
        prog="stringtable-deobfuscate",
        description="Recover readable source from a string-table obfuscated inline script.",
    )
    parser.add_argument("input", help="path of the HTML document holding the obfuscated script")
    parser.add_argument("-o", "--output", help="also write the deobfuscated code to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every pass in detail")
    return parser


def build_link(viewer_host_path, code):
    return f"file://{viewer_host_path}#{quote(code, safe=URI_COMPONENT_SAFE)}"


def main(argv=None):
    args = build_parser().parse_args(argv)
    log.configure(verbose=args.verbose)

    try:
        settings = load_settings()
    except ConfigurationError as error:
        LOG.error("%s", error)
        LOG.error("Ensure %s is defined in your environment.", VIEWER_HOST_PATH)
        return 1

    try:
        with open(args.input, encoding="utf-8", errors="replace") as handle:
            document = handle.read()
        final_code = deobfuscate(document, settings)
        if final_code is None:
            LOG.error("Deobfuscation did not return valid code. Exiting.")
            return 1
        if args.output:
            with open(args.output, "w", encoding="utf-8") as handle:
                handle.write(final_code)
            LOG.info("Deobfuscated code written to %s", args.output)
    except FileNotFoundError:
        LOG.error("Input file not found at %s", args.input)
        return 1
    except OSError as error:
        LOG.error("Could not access %s: %s", error.filename or args.input, error.strerror or error)
        return 1
    except Exception as error:
        LOG.exception("An unexpected error occurred: %s", error)
        return 1

    LOG.info("--- Deobfuscated Code Generated ---")
    LOG.info("--- URL for AST Viewer ---")
    print(build_link(settings.viewer_host_path, final_code))
    LOG.info("Copy the URL above and paste it into your host machine's browser.")
    return 0
