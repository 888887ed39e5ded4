# sheetfeed/errors.py


class SheetFeedError(Exception):
    """Base class for errors that abort a whole run."""


class FetchError(SheetFeedError):
    """The CSV source could not be read (file or network)."""


class ConfigError(SheetFeedError):
    pass


class MalformedFeedError(SheetFeedError):
    """Raised in strict mode when the rendered document fails the XML check."""

    def __init__(self, result):
        super().__init__(result.message)
        self.result = result


class ValidationError(ValueError):
    """A single record was rejected. Never escapes the pipeline."""

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason
