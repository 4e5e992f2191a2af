"""Custom exceptions for DepSlice."""


class DepSliceError(Exception):
    """Base exception for all DepSlice errors."""


class ConfigError(DepSliceError):
    """Configuration-related errors."""


class ParserError(DepSliceError):
    """Code parsing errors."""


class IndexingError(DepSliceError):
    """Source indexing errors."""


class DepsolverError(DepSliceError):
    """Raised when the dependency walk hits something it cannot handle.

    A partially sliced project does not compile, so the whole run is
    aborted instead of writing incomplete output.
    """

    def __init__(self, message: str, declaration: str = ""):
        self.declaration = declaration
        if declaration:
            message = f"{message} (while scanning {declaration})"
        super().__init__(message)
