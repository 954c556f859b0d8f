import typing

from .errors import CxxContractError
from .tokfmt import Token

if typing.TYPE_CHECKING:
    from .cursor import Cursor

#: returned by peek() once every token has been consumed
PhonyEnding = Token("", "")

_bracket_pairs = {
    "(": ")",
    "[": "]",
    "{": "}",
    "<": ">",
}

_attribute_keywords = {"alignas", "__attribute__", "__declspec"}


class DeclTokenStream:
    """
    Provides the tokens of a single declaration, in source order.

    The position only ever moves forward. The stream keeps the cursor that
    the tokens came from so that errors can point at the declaration.
    """

    def __init__(
        self, tokens: typing.Sequence[Token], cursor: typing.Optional["Cursor"] = None
    ) -> None:
        self.tokens = list(tokens)
        self.cursor = cursor
        self.pos = 0

    @classmethod
    def from_cursor(cls, cursor: "Cursor") -> "DeclTokenStream":
        return cls(list(cursor.get_tokens()), cursor)

    def _error(self, msg: str) -> CxxContractError:
        tok = self.peek()
        if tok.value:
            msg = f"{msg} (at '{tok.value}')"
        return CxxContractError(msg, self.cursor)

    def done(self) -> bool:
        return self.pos >= len(self.tokens)

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return PhonyEnding

    def bump(self) -> None:
        if self.done():
            raise self._error("unexpected end of declaration")
        self.pos += 1

    def _match_multi(self, value: str) -> typing.Optional[int]:
        # value may span several tokens, i.e. 'operator()' or 'operator new'
        remaining = "".join(value.split())
        idx = self.pos
        tokens = self.tokens
        while remaining:
            if idx >= len(tokens):
                return None
            tok_value = tokens[idx].value
            if not tok_value or not remaining.startswith(tok_value):
                return None
            remaining = remaining[len(tok_value) :]
            idx += 1
        return idx

    def skip_if(self, value: str, multi_token: bool = False) -> bool:
        """
        Consumes the current token if it matches value. If multi_token is
        set, value may be spread over several tokens.
        """
        if self.done():
            return False

        if multi_token:
            end = self._match_multi(value)
            if end is None or end == self.pos:
                return False
            self.pos = end
            return True

        if self.tokens[self.pos].value != value:
            return False
        self.pos += 1
        return True

    def skip(self, value: str, multi_token: bool = False) -> None:
        if not self.skip_if(value, multi_token):
            raise self._error(f"expected '{value}'")

    def find_closing_bracket(self) -> int:
        """
        Returns the index of the bracket that closes the one at the current
        position, without consuming anything.

        Only brackets of the same kind are counted. For ``<`` a ``>>`` token
        closes two levels, and anything inside parentheses is ignored since
        it may be a comparison.
        """
        open_value = self.peek().value
        close_value = _bracket_pairs.get(open_value)
        if close_value is None:
            raise self._error("expected an opening bracket")

        is_angle = open_value == "<"
        level = 0
        paren_level = 0
        tokens = self.tokens

        for idx in range(self.pos, len(tokens)):
            value = tokens[idx].value
            if is_angle:
                if value == "(":
                    paren_level += 1
                    continue
                elif value == ")":
                    paren_level -= 1
                    continue
                elif paren_level > 0:
                    continue

            if value == open_value:
                level += 1
            elif value == close_value:
                level -= 1
            elif is_angle and value == ">>":
                level -= 2
            else:
                continue

            if level <= 0:
                return idx

        raise self._error(f"missing closing '{close_value}'")

    def skip_brackets(self) -> None:
        """
        Consumes one complete bracket group, starting at the current token
        """
        self.pos = self.find_closing_bracket() + 1

    def consume_until(self, idx: int) -> typing.List[Token]:
        """
        Returns the tokens from the current position up to (not including)
        idx, and moves the stream to idx
        """
        if idx < self.pos or idx > len(self.tokens):
            raise self._error("invalid token range")
        toks = self.tokens[self.pos : idx]
        self.pos = idx
        return toks

    def skip_attribute(self) -> bool:
        """
        Consumes any sequence of ``[[...]]``, ``alignas(...)``,
        ``__attribute__((...))`` or ``__declspec(...)``. Returns True if
        anything was consumed.
        """
        found = False
        while True:
            value = self.peek().value
            if value == "[" and self.peek(1).value == "[":
                self.skip_brackets()
            elif value in _attribute_keywords:
                self.bump()
                self.skip_brackets()
            else:
                return found
            found = True
