from .errors import ConfigurationError, DeobfuscationError, ExtractionError, ParseFailure
from .pipeline import PipelineState, deobfuscate, deobfuscate_script, deobfuscate_tree, run_passes

__version__ = "0.1.0"
