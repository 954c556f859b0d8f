"""
The interface of the semantic front end, as seen by the assemblers.

:class:`Cursor` follows the naming of ``clang.cindex.Cursor`` so that the
libclang adapter stays thin, but any object with these members works.
"""

import enum
import typing

from .tokfmt import Location, Token
from .types import StorageClass


class CursorKind(enum.Enum):
    """
    The cursor kinds that are handled. Everything else is ``OTHER``.
    """

    FUNCTION_DECL = "FUNCTION_DECL"
    CXX_METHOD = "CXX_METHOD"
    CONVERSION_FUNCTION = "CONVERSION_FUNCTION"
    PARM_DECL = "PARM_DECL"

    NAMESPACE = "NAMESPACE"
    LINKAGE_SPEC = "LINKAGE_SPEC"
    CLASS_DECL = "CLASS_DECL"
    STRUCT_DECL = "STRUCT_DECL"
    UNION_DECL = "UNION_DECL"

    OTHER = "OTHER"

    @classmethod
    def from_name(cls, name: str) -> "CursorKind":
        return cls.__members__.get(name, cls.OTHER)


@typing.runtime_checkable
class Cursor(typing.Protocol):
    """
    A declaration, type or expression of the parsed program
    """

    kind: CursorKind

    #: Name of the entity. For operators this contains the operator tokens,
    #: i.e. ``operator()``
    spelling: str

    #: Semantic type of the entity, passed to the type parser
    type: typing.Any

    #: Semantic return type of a function, passed to the type parser
    result_type: typing.Any

    storage_class: StorageClass

    location: typing.Optional[Location]

    def get_usr(self) -> str:
        """
        Unified symbol resolution string. Empty if the entity has none.
        """

    def get_children(self) -> typing.Iterable["Cursor"]:
        """
        Child cursors in source order. For functions, the parameters are only
        the function's own. For parameters, the only expression is the
        default value.
        """

    def get_tokens(self) -> typing.Iterable[Token]:
        """
        All tokens in the source range of this cursor
        """

    def is_expression(self) -> bool:
        ...

    def is_definition(self) -> bool:
        ...

    def is_variadic(self) -> bool:
        ...

    def is_static_method(self) -> bool:
        ...

    def is_virtual_method(self) -> bool:
        ...

    def is_pure_virtual_method(self) -> bool:
        ...

    def has_overridden_cursors(self) -> bool:
        """
        True if the method overrides a method of a base class
        """
