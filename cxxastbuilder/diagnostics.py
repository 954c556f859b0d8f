"""
Diagnostic sinks for recoverable parse errors.

Anything with a ``log(producer, diagnostic)`` method can be used as the
sink of a :class:`.ParseContext`.
"""

import logging
import typing

from .tokfmt import Location

logger = logging.getLogger("cxxastbuilder")


class Diagnostic(typing.NamedTuple):
    """
    A message about something that could not be parsed
    """

    message: str

    #: Where the problem was found, if known
    location: typing.Optional[Location] = None

    def format(self) -> str:
        if self.location is None:
            return self.message
        return f"{self.location.filename}:{self.location.lineno}: {self.message}"


@typing.runtime_checkable
class DiagnosticLogger(typing.Protocol):
    def log(self, producer: str, diagnostic: Diagnostic) -> None:
        """
        Called once for each recoverable error
        """


class LoggingDiagnosticLogger:
    """
    Sends diagnostics to the ``cxxastbuilder`` logger as warnings
    """

    def __init__(self, log: typing.Optional[logging.Logger] = None) -> None:
        self._logger = log if log is not None else logger

    def log(self, producer: str, diagnostic: Diagnostic) -> None:
        self._logger.warning("[%s] %s", producer, diagnostic.format())


class CollectingDiagnosticLogger(LoggingDiagnosticLogger):
    """
    Keeps every diagnostic it receives, and also forwards it to the logger
    """

    def __init__(self, log: typing.Optional[logging.Logger] = None) -> None:
        super().__init__(log)
        self.diagnostics: typing.List[typing.Tuple[str, Diagnostic]] = []

    def log(self, producer: str, diagnostic: Diagnostic) -> None:
        self.diagnostics.append((producer, diagnostic))
        super().log(producer, diagnostic)
