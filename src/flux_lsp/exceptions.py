"""Error taxonomy for the Flux language server."""

from __future__ import annotations

from lsprotocol.types import ErrorCodes, ResponseError


class FluxLspError(RuntimeError):
    """Failure that is reported to the client as a protocol error object.

    Raising one of these from a handler never terminates the server: the
    router converts it into ``{id, error: {code, message}}`` and keeps going.
    """

    code: int = ErrorCodes.InternalError

    def __init__(self, message: str, *, code: int | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code

    def to_response_error(self) -> ResponseError:
        return ResponseError(code=int(self.code), message=str(self))


class ParseError(FluxLspError):
    """The raw message body is not JSON."""

    code = ErrorCodes.ParseError


class InvalidEnvelopeError(FluxLspError):
    """The message body lacks a usable ``method`` / ``id`` envelope."""

    code = ErrorCodes.InvalidRequest


class MalformedParamsError(FluxLspError):
    """The params payload does not structure into the handler's params type."""

    code = ErrorCodes.InvalidParams


class StoreLockError(FluxLspError):
    """The document store lock could not be acquired in time."""

    code = ErrorCodes.InternalError


class FrontEndError(RuntimeError):
    """Base class for failures raised by a language front end."""


class AnalysisError(FrontEndError):
    """Semantic analysis of a package failed; callers fall back to the parse tree."""


class FormatError(FrontEndError):
    """The canonical formatter rejected the source text."""


class FrontEndLoadError(FrontEndError):
    """A configured ``module:attribute`` front end reference did not resolve."""
