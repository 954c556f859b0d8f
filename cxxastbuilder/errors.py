import typing

from .diagnostics import Diagnostic

if typing.TYPE_CHECKING:
    from .cursor import Cursor
    from .tokfmt import Token


class CxxParseError(Exception):
    """
    Exception raised when a recoverable parsing error occurs. The affected
    part of the declaration is dropped and the diagnostic is logged.
    """

    def __init__(
        self,
        msg: str,
        cursor: typing.Optional["Cursor"] = None,
        tok: typing.Optional["Token"] = None,
    ) -> None:
        Exception.__init__(self, msg)
        self.msg = msg
        self.cursor = cursor
        self.tok = tok

    def get_diagnostic(self) -> Diagnostic:
        location = None
        if self.tok is not None and self.tok.location is not None:
            location = self.tok.location
        elif self.cursor is not None:
            location = self.cursor.location
        return Diagnostic(self.msg, location)


class CxxContractError(Exception):
    """
    Raised when an assumption about well-formed input does not hold. These
    are fatal: the library never catches them.
    """

    def __init__(self, msg: str, cursor: typing.Optional["Cursor"] = None) -> None:
        Exception.__init__(self, msg)
        self.msg = msg
        self.cursor = cursor


class VirtualInfoMismatch(CxxContractError):
    """
    The virtual-ness derived from the tokens disagrees with what the
    semantic front end reports
    """
