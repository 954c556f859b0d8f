"""
Builds function entities from a cursor of the semantic front end.

The front end knows what a declaration means, but not how it was written:
qualifiers, ``virtual``/``override``/``final``, the noexcept condition and
``= default``/``= delete``/``= 0`` have to be recovered from the tokens of
the declaration. Whatever is found in the tokens is checked against the
semantic facts, and any disagreement is a :class:`.CxxContractError`.
"""

import typing
from dataclasses import dataclass

from .builder import (
    ConversionOpBuilder,
    FunctionBuilder,
    MemberFunctionBuilder,
    build_parameter,
)
from .context import ParseContext
from .cursor import Cursor, CursorKind
from .errors import CxxContractError, CxxParseError, VirtualInfoMismatch
from .tokenstream import DeclTokenStream
from .types import (
    BodyKind,
    BuiltinType,
    ConversionOp,
    CvQualifier,
    Expression,
    Function,
    FunctionParameter,
    LiteralExpression,
    MemberFunction,
    ReferenceQualifier,
    VirtualFlags,
)

#: producer name used for diagnostics
PRODUCER = "libclang parser"

_open_brackets = {"(", "[", "<", "{"}

AnyFunctionBuilder = typing.Union[
    FunctionBuilder, MemberFunctionBuilder, ConversionOpBuilder
]


def _check_kind(cur: Cursor, kind: CursorKind) -> None:
    if cur.kind != kind:
        raise CxxContractError(
            f"expected a {kind.name} cursor, got {cur.kind.name}", cur
        )


#
# Parameters
#


def parse_parameter(context: ParseContext, cur: Cursor) -> FunctionParameter:
    name = cur.spelling
    ptype = context.parse_type(cur.type)

    default: typing.Optional[Expression] = None
    for child in cur.get_children():
        # type references and attributes are children too
        if not child.is_expression():
            continue
        if default is not None:
            raise CxxContractError(
                "unexpected child cursor of function parameter", child
            )
        default = context.parse_expression(child)

    return build_parameter(
        context.index, context.get_entity_id(cur), name, ptype, default
    )


def add_parameters(
    context: ParseContext, builder: AnyFunctionBuilder, cur: Cursor
) -> None:
    """
    Adds every parameter that can be parsed. A parameter that fails is
    logged and left out, the rest of the signature is still recorded.
    """
    for child in cur.get_children():
        if child.kind != CursorKind.PARM_DECL:
            continue

        try:
            param = parse_parameter(context, child)
        except CxxParseError as e:
            context.logger.log(PRODUCER, e.get_diagnostic())
        else:
            context.debug_print("parameter: %s", param)
            builder.add_parameter(param)


def skip_parameters(stream: DeclTokenStream) -> None:
    # explicit template arguments of a specialization: f<int>(...)
    if stream.peek().value == "<":
        stream.skip_brackets()
    if stream.peek().value != "(":
        raise CxxContractError("expected function parameters", stream.cursor)
    stream.skip_brackets()


#
# Prefix: everything in front of the name
#


@dataclass
class PrefixInfo:
    is_constexpr: bool = False
    is_virtual: bool = False


def parse_prefix_info(stream: DeclTokenStream, name: str) -> PrefixInfo:
    result = PrefixInfo()

    # just check for keywords until we've reached the function name
    # notes: name can have multiple tokens if it is an operator
    while not stream.skip_if(name, multi_token=True):
        if stream.done():
            raise CxxContractError(
                f"function name '{name}' not found in declaration", stream.cursor
            )
        if stream.skip_if("constexpr"):
            result.is_constexpr = True
        elif stream.skip_if("virtual"):
            result.is_virtual = True
        else:
            stream.bump()

    return result


#
# Suffix: everything after the parameters
#


@dataclass
class SuffixInfo:
    body_kind: BodyKind
    noexcept_condition: typing.Optional[Expression] = None
    cv_qualifier: CvQualifier = CvQualifier.NONE
    ref_qualifier: ReferenceQualifier = ReferenceQualifier.NONE

    #: virt-specifiers and '= 0' found in the tokens, None if there are none
    virtual_keywords: typing.Optional[VirtualFlags] = None

    def add_virtual_flag(self, flag: VirtualFlags) -> None:
        if self.virtual_keywords is None:
            self.virtual_keywords = flag
        else:
            self.virtual_keywords |= flag


def parse_cv(stream: DeclTokenStream) -> CvQualifier:
    if stream.skip_if("const"):
        if stream.skip_if("volatile"):
            return CvQualifier.CONST_VOLATILE
        return CvQualifier.CONST
    elif stream.skip_if("volatile"):
        if stream.skip_if("const"):
            return CvQualifier.CONST_VOLATILE
        return CvQualifier.VOLATILE
    return CvQualifier.NONE


def parse_ref(stream: DeclTokenStream) -> ReferenceQualifier:
    if stream.skip_if("&"):
        return ReferenceQualifier.LVALUE
    elif stream.skip_if("&&"):
        return ReferenceQualifier.RVALUE
    return ReferenceQualifier.NONE


def parse_noexcept(
    stream: DeclTokenStream, context: ParseContext
) -> typing.Optional[Expression]:
    if not stream.skip_if("noexcept"):
        return None

    bool_type = BuiltinType("bool")
    if stream.peek().value != "(":
        return LiteralExpression(bool_type, "true")

    closing = stream.find_closing_bracket()

    stream.skip("(")
    expr = context.parse_raw_expression(stream.consume_until(closing), bool_type)
    stream.skip(")")

    return expr


def parse_body_kind(stream: DeclTokenStream) -> typing.Tuple[BodyKind, bool]:
    """
    Parses what follows the '=', returns the body kind and whether the
    function is pure virtual
    """
    if stream.skip_if("default"):
        body_kind = BodyKind.DEFAULTED
    elif stream.skip_if("delete"):
        body_kind = BodyKind.DELETED
    elif stream.skip_if("0"):
        return BodyKind.DECLARATION, True
    else:
        raise CxxContractError(
            f"unexpected token '{stream.peek().value}' for function body kind",
            stream.cursor,
        )

    if stream.peek().value == "{":
        raise CxxContractError(
            f"function body after '= {body_kind.name.lower()}'", stream.cursor
        )
    return body_kind, False


def _parse_body(stream: DeclTokenStream, result: SuffixInfo) -> None:
    result.body_kind, pure_virtual = parse_body_kind(stream)
    if pure_virtual:
        result.add_virtual_flag(VirtualFlags.PURE)


def parse_suffix_info(stream: DeclTokenStream, context: ParseContext) -> SuffixInfo:
    """
    Precondition: the parameters have been skipped

    .. code-block:: c++

        auto fn(int) const & noexcept -> int override = 0;
                     ~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
    """
    cur = stream.cursor
    is_definition = cur is not None and cur.is_definition()
    result = SuffixInfo(
        BodyKind.DEFINITION if is_definition else BodyKind.DECLARATION
    )

    # syntax: <attribute> <cv> <ref> <exception>
    stream.skip_attribute()
    result.cv_qualifier = parse_cv(stream)
    result.ref_qualifier = parse_ref(stream)
    if stream.skip_if("throw"):
        # dynamic exception specifications are not kept
        stream.skip_brackets()
    result.noexcept_condition = parse_noexcept(stream, context)

    # leftovers of the return type of a parenthesized declarator
    #
    #   void (*fn(int a, int b) const)(int);
    #                          ~~~~~~- suffix
    #                                ~~~~~~- leftovers
    if stream.skip_if(")"):
        stream.skip_brackets()

    if stream.skip_if("->"):
        # the trailing return type can't be skipped exactly without a type
        # parser, so look for key tokens and skip anything in brackets.
        # This isn't quite correct, but good enough.
        while not stream.done():
            if stream.peek().value in _open_brackets:
                stream.skip_brackets()
            elif stream.skip_if("override"):
                result.add_virtual_flag(VirtualFlags.OVERRIDE)
            elif stream.skip_if("final"):
                result.add_virtual_flag(VirtualFlags.FINAL)
            elif stream.skip_if("="):
                _parse_body(stream, result)
            else:
                stream.bump()
    else:
        # syntax: <virtuals> <body>
        if stream.skip_if("override"):
            result.add_virtual_flag(VirtualFlags.OVERRIDE)
            if stream.skip_if("final"):
                result.add_virtual_flag(VirtualFlags.FINAL)
        elif stream.skip_if("final"):
            result.add_virtual_flag(VirtualFlags.FINAL)
            if stream.skip_if("override"):
                result.add_virtual_flag(VirtualFlags.OVERRIDE)

        if stream.skip_if("="):
            _parse_body(stream, result)

    return result


#
# Virtual-ness
#


def calculate_virtual(
    cur: Cursor, virtual_keyword: bool, virtual_suffix: typing.Optional[VirtualFlags]
) -> typing.Optional[VirtualFlags]:
    """
    Combines what the front end knows about the method with the keywords
    that were found in its tokens
    """
    if not cur.is_virtual_method():
        # not a virtual function, ensure it wasn't parsed that way
        if virtual_keyword or virtual_suffix is not None:
            raise VirtualInfoMismatch("virtualness not parsed properly", cur)
        return None

    elif cur.is_pure_virtual_method():
        # pure virtual function: all information is in the suffix
        if virtual_suffix is None or not virtual_suffix & VirtualFlags.PURE:
            raise VirtualInfoMismatch("pure virtual not detected", cur)
        return virtual_suffix

    if virtual_suffix is not None and virtual_suffix & VirtualFlags.PURE:
        raise VirtualInfoMismatch(
            "pure virtual function detected, even though it isn't", cur
        )

    overrides = (
        not virtual_keyword
        or (virtual_suffix is not None and bool(virtual_suffix & VirtualFlags.OVERRIDE))
        or cur.has_overridden_cursors()
    )

    result = virtual_suffix if virtual_suffix is not None else VirtualFlags(0)
    if overrides:
        result |= VirtualFlags.OVERRIDE
    return result


#
# Assemblers
#


def _parse_function_impl(context: ParseContext, cur: Cursor) -> Function:
    name = cur.spelling

    builder = FunctionBuilder(name, context.parse_type(cur.result_type))
    add_parameters(context, builder, cur)
    if cur.is_variadic():
        builder.is_variadic()
    builder.storage_class(cur.storage_class)

    stream = DeclTokenStream.from_cursor(cur)

    prefix = parse_prefix_info(stream, name)
    if prefix.is_virtual:
        raise CxxContractError("free function cannot be virtual", cur)
    if prefix.is_constexpr:
        builder.is_constexpr()

    skip_parameters(stream)

    suffix = parse_suffix_info(stream, context)
    if (
        suffix.cv_qualifier != CvQualifier.NONE
        or suffix.ref_qualifier != ReferenceQualifier.NONE
        or suffix.virtual_keywords is not None
    ):
        raise CxxContractError("unexpected tokens in function suffix", cur)
    if suffix.noexcept_condition is not None:
        builder.noexcept_condition(suffix.noexcept_condition)

    context.debug_print("function %s: %s", name, suffix)
    return builder.finish(context.index, context.get_entity_id(cur), suffix.body_kind)


def parse_function(context: ParseContext, cur: Cursor) -> Function:
    _check_kind(cur, CursorKind.FUNCTION_DECL)
    return _parse_function_impl(context, cur)


def try_parse_static_function(
    context: ParseContext, cur: Cursor
) -> typing.Optional[Function]:
    """
    Static member functions have no qualifiers and no virtual-ness, so they
    are built like free functions. Returns None for any other method.
    """
    _check_kind(cur, CursorKind.CXX_METHOD)
    if cur.is_static_method():
        return _parse_function_impl(context, cur)
    return None


def _handle_suffix(
    context: ParseContext,
    cur: Cursor,
    builder: MemberFunctionBuilder,
    stream: DeclTokenStream,
    is_virtual: bool,
) -> typing.Any:
    suffix = parse_suffix_info(stream, context)
    builder.cv_ref_qualifier(suffix.cv_qualifier, suffix.ref_qualifier)
    if suffix.noexcept_condition is not None:
        builder.noexcept_condition(suffix.noexcept_condition)

    virt = calculate_virtual(cur, is_virtual, suffix.virtual_keywords)
    if virt is not None:
        builder.virtual_info(virt)

    context.debug_print("method %s: %s virtual=%s", cur.spelling, suffix, virt)
    return builder.finish(context.index, context.get_entity_id(cur), suffix.body_kind)


def parse_member_function(context: ParseContext, cur: Cursor) -> MemberFunction:
    _check_kind(cur, CursorKind.CXX_METHOD)
    name = cur.spelling

    builder = MemberFunctionBuilder(name, context.parse_type(cur.result_type))
    add_parameters(context, builder, cur)
    if cur.is_variadic():
        builder.is_variadic()

    stream = DeclTokenStream.from_cursor(cur)

    prefix = parse_prefix_info(stream, name)
    if prefix.is_constexpr:
        builder.is_constexpr()

    skip_parameters(stream)
    return _handle_suffix(context, cur, builder, stream, prefix.is_virtual)


def parse_conversion_op(context: ParseContext, cur: Cursor) -> ConversionOp:
    _check_kind(cur, CursorKind.CONVERSION_FUNCTION)
    builder = ConversionOpBuilder(context.parse_type(cur.result_type))

    stream = DeclTokenStream.from_cursor(cur)

    # look for constexpr, explicit, virtual
    # must come before the operator token
    is_virtual = False
    while not stream.skip_if("operator"):
        if stream.done():
            raise CxxContractError("conversion operator without 'operator'", cur)
        if stream.skip_if("virtual"):
            is_virtual = True
        elif stream.skip_if("constexpr"):
            builder.is_constexpr()
        elif stream.skip_if("explicit"):
            builder.is_explicit()
            # explicit(bool)
            if stream.peek().value == "(":
                stream.skip_brackets()
        else:
            stream.bump()

    # skip the conversion type up to the empty parameter list, skipping
    # over anything in brackets: operator std::function<void(int)>()
    while True:
        value = stream.peek().value
        if value == "(" and stream.peek(1).value == ")":
            stream.bump()
            stream.bump()
            break
        elif value in _open_brackets:
            stream.skip_brackets()
        else:
            stream.bump()

    return _handle_suffix(context, cur, builder, stream, is_virtual)
