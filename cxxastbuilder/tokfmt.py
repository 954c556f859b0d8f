from dataclasses import dataclass, field
import typing


class Location(typing.NamedTuple):
    """
    Location that a token or cursor was found at
    """

    filename: str
    lineno: int
    column: int = 0


#: token kinds reported by the front end
KEYWORD = "keyword"
IDENTIFIER = "identifier"
LITERAL = "literal"
PUNCTUATION = "punctuation"
COMMENT = "comment"


# key: token kind or value, value: (left spacing, right spacing)
_want_spacing = {
    KEYWORD: (2, 2),
    IDENTIFIER: (2, 2),
    LITERAL: (2, 2),
    "...": (2, 2),
    ">": (0, 2),
    ")": (0, 1),
    "(": (1, 0),
    ",": (0, 3),
    "*": (1, 2),
    "&": (0, 2),
    "&&": (0, 2),
}


@dataclass(frozen=True)
class Token:
    """
    A single token of a declaration, as produced by the front end's
    tokenizer. Tokens are never modified after they are created.
    """

    #: Raw value of the token
    value: str

    #: Kind of the token (keyword, identifier, literal, punctuation)
    kind: str = field(repr=False, compare=False, default="")

    #: Where the token was found
    location: typing.Optional[Location] = field(
        repr=False, compare=False, default=None
    )


def tokfmt(toks: typing.Sequence[Token]) -> str:
    """
    Helper function that takes a list of tokens and converts them to a string
    """
    last = 0
    vals = []
    default = (0, 0)
    ws = _want_spacing

    for tok in toks:
        value = tok.value
        # special case
        if value == "operator":
            l, r = 2, 0
        elif tok.kind == PUNCTUATION:
            l, r = ws.get(value, default)
        else:
            l, r = ws.get(tok.kind, default)
        if l + last >= 3:
            vals.append(" ")

        last = r
        vals.append(value)

    return "".join(vals)
