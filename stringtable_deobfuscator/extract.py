import logging
from html.parser import HTMLParser

from .config import DEFAULT_MARKER
from .errors import ExtractionError

LOG = logging.getLogger(__name__)


class ScriptCollector(HTMLParser):
    """Collects the text of every inline <script> element."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.scripts = []
        self._buffer = None

    def handle_starttag(self, tag, attrs):
        if tag != "script":
            return
        # External scripts carry no inline code worth decoding
        if any(name == "src" for name, _ in attrs):
            self._buffer = None
            return
        self._buffer = []

    def handle_endtag(self, tag):
        if tag == "script" and self._buffer is not None:
            self.scripts.append("".join(self._buffer))
            self._buffer = None

    def handle_data(self, data):
        if self._buffer is not None:
            self._buffer.append(data)


def inline_scripts(document):
    collector = ScriptCollector()
    collector.feed(document)
    collector.close()
    # An unterminated script at the end of the document still counts; its
    # text may be left unconsumed in rawdata
    if collector._buffer is not None:
        collector.scripts.append("".join(collector._buffer) + collector.rawdata)
    return collector.scripts


def extract_script(document, marker=DEFAULT_MARKER):
    for script in inline_scripts(document):
        if script and marker in script:
            LOG.info("Found target script tag, proceeding with parsing...")
            return script
    raise ExtractionError("Could not find an *inline, obfuscated* <script> tag to deobfuscate.")
