import inspect
import typing
from dataclasses import dataclass, field

from . import expression
from .diagnostics import DiagnosticLogger, LoggingDiagnosticLogger
from .index import EntityIndex
from .options import ParserOptions
from .tokfmt import Token
from .types import CppType, EntityId, Expression

if typing.TYPE_CHECKING:
    from .cursor import Cursor

TypeParser = typing.Callable[["ParseContext", typing.Any], CppType]
ExpressionParser = typing.Callable[["ParseContext", "Cursor"], Expression]
RawExpressionParser = typing.Callable[
    ["ParseContext", typing.Sequence[Token], CppType], Expression
]


@dataclass
class ParseContext:
    """
    Everything the assemblers need besides the cursor itself. One context
    is shared by all declarations of a translation unit.
    """

    #: Receives every entity that is built
    index: EntityIndex = field(default_factory=EntityIndex)

    #: Receives recoverable parse errors
    logger: DiagnosticLogger = field(default_factory=LoggingDiagnosticLogger)

    options: ParserOptions = field(default_factory=ParserOptions)

    type_parser: TypeParser = expression.parse_type
    expression_parser: ExpressionParser = expression.parse_expression
    raw_expression_parser: RawExpressionParser = expression.parse_raw_expression

    def __post_init__(self) -> None:
        if self.options.verbose:

            def debug_print(fmt: str, *args: typing.Any) -> None:
                fmt = f"[%4d] {fmt}"
                args = (inspect.currentframe().f_back.f_lineno,) + args  # type: ignore
                print(fmt % args)

            self.debug_print = debug_print
        else:
            self.debug_print = lambda fmt, *args: None

    def parse_type(self, semantic_type: typing.Any) -> CppType:
        return self.type_parser(self, semantic_type)

    def parse_expression(self, cursor: "Cursor") -> Expression:
        return self.expression_parser(self, cursor)

    def parse_raw_expression(
        self, toks: typing.Sequence[Token], type: CppType
    ) -> Expression:
        return self.raw_expression_parser(self, toks, type)

    def get_entity_id(self, cursor: "Cursor") -> EntityId:
        return self.index.get_entity_id(cursor)
