"""
Default type and expression parsers. They keep expressions as tokens, which
is all the assemblers need for default values and noexcept conditions.
"""

import typing

from .errors import CxxParseError
from .tokfmt import LITERAL, Token
from .types import (
    BuiltinType,
    CppType,
    Expression,
    LiteralExpression,
    UnexposedExpression,
    UnexposedType,
)

if typing.TYPE_CHECKING:
    from .context import ParseContext
    from .cursor import Cursor

_literal_keywords = {"true", "false", "nullptr"}


def parse_type(context: "ParseContext", semantic_type: typing.Any) -> CppType:
    """
    Used when the front end has no type parser of its own: anything that is
    not already a parsed type is kept by its spelling
    """
    if isinstance(semantic_type, (BuiltinType, UnexposedType)):
        return semantic_type
    spelling = getattr(semantic_type, "spelling", None)
    if spelling is None:
        spelling = str(semantic_type)
    return UnexposedType(spelling)


def parse_raw_expression(
    context: "ParseContext", toks: typing.Sequence[Token], type: CppType
) -> Expression:
    if not toks:
        raise CxxParseError("expected an expression")

    if len(toks) == 1:
        tok = toks[0]
        if tok.kind == LITERAL or tok.value in _literal_keywords:
            return LiteralExpression(type, tok.value)

    return UnexposedExpression(type, tuple(toks))


def parse_expression(context: "ParseContext", cursor: "Cursor") -> Expression:
    toks = list(cursor.get_tokens())
    if not toks:
        raise CxxParseError("unable to parse expression", cursor)
    return context.parse_raw_expression(toks, context.parse_type(cursor.type))
