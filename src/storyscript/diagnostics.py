""" Diagnostics for malformed or inconsistent story content.

Nothing in the scripting pipeline raises on bad script content. Instead
components report a Diagnostic to a sink and carry on with a degraded
result. The default sink just logs, tests swap in a RecordingSink to assert
on what was reported.
"""

import abc
import enum
import logging
from dataclasses import dataclass
from typing import Optional, List, Any

from storyscript import util


class Category(enum.Enum):
    # unmatched line or stray token, recovered locally
    STRUCTURAL_PARSE_ANOMALY = enum.auto()
    # malformed ~ or { } body, recovered as a no-op or false
    UNKNOWN_EXPRESSION_OR_CONDITION = enum.auto()
    # absent label, variable, character or attribute
    MISSING_REFERENCE = enum.auto()
    # too many silent nodes without reaching anything observable
    RUNAWAY_EXECUTION = enum.auto()
    # node kind the interpreter does not understand
    UNKNOWN_NODE = enum.auto()


@dataclass(frozen=True)
class Diagnostic:
    category: Category
    message: str
    line: Optional[int] = None
    level: int = logging.WARNING
    # name of whatever went missing or failed to parse
    subject: Optional[str] = None

    def __str__(self) -> str:
        if self.line is not None:
            return f'line {self.line}: {self.message}'
        return self.message


class DiagnosticSink(abc.ABC):
    @abc.abstractmethod
    def report(self, diagnostic:Diagnostic, logger:Optional[logging.Logger]=None) -> None:
        """ receives a diagnostic from a component.

        logger is the reporting component's logger, sinks may use it to
        attribute the diagnostic to its source. """
        ...


class LoggingSink(DiagnosticSink):
    """ Forwards diagnostics to the standard logging system. """

    def __init__(self, default_logger:Optional[logging.Logger]=None) -> None:
        self.default_logger = default_logger or logging.getLogger(__name__)

    def report(self, diagnostic:Diagnostic, logger:Optional[logging.Logger]=None) -> None:
        (logger or self.default_logger).log(diagnostic.level, str(diagnostic))


class RecordingSink(DiagnosticSink):
    """ Keeps every diagnostic it sees, optionally logging them too. """

    def __init__(self, forward:Optional[DiagnosticSink]=None) -> None:
        self.diagnostics:List[Diagnostic] = []
        self.forward = forward

    def report(self, diagnostic:Diagnostic, logger:Optional[logging.Logger]=None) -> None:
        self.diagnostics.append(diagnostic)
        if self.forward:
            self.forward.report(diagnostic, logger)

    def of(self, category:Category) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.category == category]

    def subjects(self, category:Category) -> List[Optional[str]]:
        return [d.subject for d in self.of(category)]

    def clear(self) -> None:
        self.diagnostics.clear()


class Reporter:
    """ Mixin giving a component a logger and a sink to report into. """

    def __init__(self, *args:Any, sink:Optional[DiagnosticSink]=None, **kwargs:Any) -> None:
        super().__init__(*args, **kwargs)
        self.logger = logging.getLogger(util.fullname(self))
        self.sink:DiagnosticSink = sink or LoggingSink(self.logger)

    def report(self, category:Category, message:str, line:Optional[int]=None, level:int=logging.WARNING, subject:Optional[str]=None) -> None:
        self.sink.report(Diagnostic(category, message, line=line, level=level, subject=subject), self.logger)
