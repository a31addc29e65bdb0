# errors.py
from typing import Optional


class SymbolBuildError(Exception):
    """Base class for every failure raised by the build pipeline."""
    kind = "SymbolBuildError"


class NetworkError(SymbolBuildError):
    """Fetch timed out, could not connect, or got a non-2xx response."""
    kind = "NetworkError"

    def __init__(self, message: str, url: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ParseError(SymbolBuildError):
    """No format matched the payload, or no qualifying table/column was found."""
    kind = "ParseError"


class ValidationError(SymbolBuildError):
    """Fewer valid symbols than the configured minimum."""
    kind = "ValidationError"

    def __init__(self, observed: int, required: int):
        super().__init__(
            f"Only found {observed} valid symbols (required {required}); "
            f"source layout likely changed"
        )
        self.observed = observed
        self.required = required


class PersistenceError(SymbolBuildError):
    """Reading or writing the artifact failed for I/O reasons."""
    kind = "PersistenceError"

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path
