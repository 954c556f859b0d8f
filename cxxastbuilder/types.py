import enum
import typing
from dataclasses import dataclass, field

from .errors import CxxContractError
from .tokfmt import tokfmt, Token

#: Unique id of an entity, assigned by the :class:`.EntityIndex`
EntityId = int


class CvQualifier(enum.Enum):
    """
    cv-qualifier of a member function

    .. code-block:: c++

        void foo() const volatile;
                   ~~~~~~~~~~~~~~
    """

    NONE = ""
    CONST = "const"
    VOLATILE = "volatile"
    CONST_VOLATILE = "const volatile"


class ReferenceQualifier(enum.Enum):
    """
    ref-qualifier of a member function

    .. code-block:: c++

        void foo() &&;
                   ~~
    """

    NONE = ""
    LVALUE = "&"
    RVALUE = "&&"


class BodyKind(enum.Enum):
    #: Only declared, including pure virtual functions
    DECLARATION = "declaration"

    #: Has a body
    DEFINITION = "definition"

    #: ``= default``
    DEFAULTED = "defaulted"

    #: ``= delete``
    DELETED = "deleted"


class VirtualFlags(enum.Flag):
    """
    Details of a virtual function. The virtual info of a function is
    ``None`` if it isn't virtual at all, and an empty ``VirtualFlags(0)``
    if it is a plain virtual function.
    """

    PURE = enum.auto()
    OVERRIDE = enum.auto()
    FINAL = enum.auto()


class StorageClass(enum.Enum):
    NONE = ""
    AUTO = "auto"
    REGISTER = "register"
    STATIC = "static"
    EXTERN = "extern"


#
# Types and expressions, as produced by the type and expression parsers
#


@dataclass(frozen=True)
class BuiltinType:
    """
    A fundamental type such as ``int`` or ``bool``
    """

    name: str

    def format(self) -> str:
        return self.name


@dataclass(frozen=True)
class UnexposedType:
    """
    Any other type. Only the spelling that the front end reports is kept.
    """

    spelling: str

    def format(self) -> str:
        return self.spelling


CppType = typing.Union[BuiltinType, UnexposedType]


@dataclass(frozen=True)
class LiteralExpression:
    """
    A literal, such as the implicit ``true`` of a bare ``noexcept``
    """

    type: CppType
    value: str

    def format(self) -> str:
        return self.value


@dataclass(frozen=True)
class UnexposedExpression:
    """
    An expression that is kept as its list of tokens

    .. code-block:: c++

        void fn(int x = 4 + 2) noexcept(sizeof(T) > 4);
                        ~~~~~           ~~~~~~~~~~~~~
    """

    type: CppType
    tokens: typing.Tuple[Token, ...]

    def format(self) -> str:
        return tokfmt(self.tokens)


Expression = typing.Union[LiteralExpression, UnexposedExpression]


#
# Entities
#


@dataclass(frozen=True)
class FunctionParameter:
    """
    A parameter of a function. The name is empty for unnamed parameters.
    """

    id: EntityId
    name: str
    type: CppType
    default: typing.Optional[Expression] = None

    def format(self) -> str:
        default = f" = {self.default.format()}" if self.default else ""
        if self.name:
            return f"{self.type.format()} {self.name}{default}"
        else:
            return f"{self.type.format()}{default}"


@dataclass(frozen=True)
class FunctionBase:
    """
    Everything that the different kinds of functions have in common
    """

    id: EntityId

    #: Empty for conversion operators
    name: str

    return_type: CppType

    #: In declaration order
    parameters: typing.Tuple[FunctionParameter, ...] = ()

    #: Set to True if ends with ``...``
    vararg: bool = False

    constexpr: bool = False

    cv_qualifier: CvQualifier = CvQualifier.NONE
    ref_qualifier: ReferenceQualifier = ReferenceQualifier.NONE

    #: Condition of the noexcept specification. A bare ``noexcept`` is
    #: stored as the literal ``true``.
    noexcept: typing.Optional[Expression] = None

    #: None if the function is not virtual
    virtual_info: typing.Optional[VirtualFlags] = None

    body_kind: BodyKind = BodyKind.DECLARATION

    @property
    def is_virtual(self) -> bool:
        return self.virtual_info is not None

    @property
    def is_pure_virtual(self) -> bool:
        return self.virtual_info is not None and bool(
            self.virtual_info & VirtualFlags.PURE
        )

    def format_params(self) -> str:
        params = ", ".join(p.format() for p in self.parameters)
        if self.vararg:
            params = f"{params}, ..." if params else "..."
        return f"({params})"


@dataclass(frozen=True)
class Function(FunctionBase):
    """
    A free function, or a static member function
    """

    storage_class: StorageClass = StorageClass.NONE

    def __post_init__(self) -> None:
        if (
            self.cv_qualifier != CvQualifier.NONE
            or self.ref_qualifier != ReferenceQualifier.NONE
            or self.virtual_info is not None
        ):
            raise CxxContractError(
                f"free function '{self.name}' cannot be virtual or cv/ref qualified"
            )


@dataclass(frozen=True)
class MemberFunction(FunctionBase):
    """
    A non-static member function
    """


@dataclass(frozen=True)
class ConversionOp(FunctionBase):
    """
    A conversion operator. The type it converts to is the return type.

    .. code-block:: c++

        explicit operator bool() const;
    """

    explicit: bool = False


Entity = typing.Union[FunctionParameter, Function, MemberFunction, ConversionOp]
