class DeobfuscationError(Exception):
    pass


class ConfigurationError(DeobfuscationError):
    pass


class ExtractionError(DeobfuscationError):
    pass


class ParseFailure(DeobfuscationError):
    """The target script could not be parsed.

    ``line`` and ``column`` are 1-based and may be None when the parser
    did not report a location.
    """

    def __init__(self, message, line=None, column=None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def context(self, source, before=2, after=2):
        """Lines around the failure, the failing one marked with ``>>``."""
        if not self.line or self.line < 1:
            return []
        lines = source.split("\n")
        start = max(0, self.line - 1 - before)
        end = min(len(lines), self.line + after)
        window = []
        for number in range(start + 1, end + 1):
            prefix = ">> " if number == self.line else "   "
            window.append(f"{prefix}{number}: {lines[number - 1]}")
        return window
