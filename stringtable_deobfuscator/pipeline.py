import logging
from dataclasses import dataclass, replace

from .config import DEFAULT_MAX_ITERATIONS, Settings
from .deadcode import eliminate_dead_code
from .errors import ExtractionError, ParseFailure
from .extract import extract_script
from .passes import REWRITE_PASSES
from .patterns import find_decoder, find_loader
from .syntax import beautify, generate, parse

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineState:
    """What one run has learned so far.

    A fresh record is made for every iteration; the discovery fields are
    carried over unchanged once set.
    """

    table: tuple = ()
    loader_name: str = None
    decoder_name: str = None
    offset: int = None
    decoder_found: bool = False
    iteration: int = 0
    changed: bool = True


def discover(tree, state):
    if state.decoder_found:
        return state

    if state.loader_name is None:
        loader = find_loader(tree)
        if loader:
            LOG.info("Found string array loader: %s (length: %d)", loader.name, len(loader.table))
            state = replace(state, loader_name=loader.name, table=loader.table)

    if state.loader_name is not None:
        decoder = find_decoder(tree, state.loader_name)
        if decoder:
            LOG.info("Found decoder: %s, Offset: %d", decoder.name, decoder.offset)
            state = replace(state, decoder_name=decoder.name, offset=decoder.offset, decoder_found=True)

    return state


def run_passes(tree, max_iterations=DEFAULT_MAX_ITERATIONS, state=None):
    state = state or PipelineState()
    LOG.info("Starting deobfuscation passes...")

    while state.changed and state.iteration < max_iterations:
        before = generate(tree)
        state = discover(tree, state)
        changes = {rewrite.__name__: rewrite(tree, state) for rewrite in REWRITE_PASSES}
        LOG.debug("Pass results: %s", changes)
        after = generate(tree)
        state = replace(state, iteration=state.iteration + 1, changed=before != after)
        LOG.info("Pass %d completed. Changes detected: %s", state.iteration, state.changed)

    if state.changed:
        LOG.warning("Stopped after %d passes while the code was still changing.", state.iteration)
    return state


def deobfuscate_tree(tree, max_iterations=DEFAULT_MAX_ITERATIONS):
    state = run_passes(tree, max_iterations)
    LOG.info("Performing final dead code removal pass...")
    eliminate_dead_code(tree)
    return state


def deobfuscate_script(script, max_iterations=DEFAULT_MAX_ITERATIONS):
    """Deobfuscate bare script text. Raises ParseFailure."""
    tree = parse(script)
    deobfuscate_tree(tree, max_iterations)
    return beautify(generate(tree))


def report_parse_failure(failure, script):
    LOG.error("--- PARSING FAILED ---")
    LOG.error("Parser error: %s", failure.message)
    window = failure.context(script)
    if not window:
        return
    LOG.error("--- Code around the error on line %d ---", failure.line)
    for line in window:
        LOG.error("%s", line)
    LOG.error("------------------------------------------")
    LOG.error('Look for invisible characters or broken syntax on the line marked with ">>".')


def deobfuscate(document, settings=None):
    """Deobfuscate the marked inline script of ``document``.

    Returns the formatted source, or None when no target script was found
    or it could not be parsed.
    """
    settings = settings or Settings()
    try:
        script = extract_script(document, settings.marker)
    except ExtractionError as error:
        LOG.error("%s", error)
        return None

    try:
        return deobfuscate_script(script, settings.max_iterations)
    except ParseFailure as failure:
        report_parse_failure(failure, script)
        return None
