import typing

import pytest

from cxxastbuilder.context import ParseContext
from cxxastbuilder.cursor import CursorKind
from cxxastbuilder.diagnostics import CollectingDiagnosticLogger, Diagnostic
from cxxastbuilder.errors import CxxContractError, CxxParseError, VirtualInfoMismatch
from cxxastbuilder.expression import parse_expression
from cxxastbuilder.function_parser import (
    parse_conversion_op,
    parse_function,
    parse_member_function,
    try_parse_static_function,
)
from cxxastbuilder.options import ParserOptions
from cxxastbuilder.tokfmt import Location
from cxxastbuilder.types import (
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
    StorageClass,
    UnexposedExpression,
    UnexposedType,
    VirtualFlags,
)

from fakeclang import (
    FILENAME,
    FakeCursor,
    conversion,
    expr,
    function,
    method,
    param,
    tokenize,
)

NOEXCEPT_TRUE = LiteralExpression(BuiltinType("bool"), "true")


def make_context(**kwargs: typing.Any) -> ParseContext:
    return ParseContext(logger=CollectingDiagnosticLogger(), **kwargs)


#
# Member functions
#


def test_const_noexcept_method() -> None:
    ctx = make_context()
    cur = method("void f ( ) const noexcept", "f")

    assert parse_member_function(ctx, cur) == MemberFunction(
        id=ctx.get_entity_id(cur),
        name="f",
        return_type=BuiltinType("void"),
        cv_qualifier=CvQualifier.CONST,
        noexcept=NOEXCEPT_TRUE,
        body_kind=BodyKind.DECLARATION,
    )


def test_virtual_override_method() -> None:
    ctx = make_context()
    cur = method("virtual void f ( ) override", "f", virtual=True, overrides=True)

    assert parse_member_function(ctx, cur) == MemberFunction(
        id=ctx.get_entity_id(cur),
        name="f",
        return_type=BuiltinType("void"),
        virtual_info=VirtualFlags.OVERRIDE,
    )


def test_pure_virtual_method() -> None:
    ctx = make_context()
    cur = method("virtual void f ( ) = 0", "f", virtual=True, pure_virtual=True)

    fn = parse_member_function(ctx, cur)
    assert fn == MemberFunction(
        id=ctx.get_entity_id(cur),
        name="f",
        return_type=BuiltinType("void"),
        virtual_info=VirtualFlags.PURE,
        body_kind=BodyKind.DECLARATION,
    )
    assert fn.is_virtual
    assert fn.is_pure_virtual


def test_trailing_return_override_method() -> None:
    ctx = make_context()
    cur = method(
        "auto f ( ) -> int override", "f", result="int", virtual=True, overrides=True
    )

    fn = parse_member_function(ctx, cur)
    assert fn == MemberFunction(
        id=ctx.get_entity_id(cur),
        name="f",
        return_type=BuiltinType("int"),
        virtual_info=VirtualFlags.OVERRIDE,
    )
    assert fn.virtual_info is not None and VirtualFlags.OVERRIDE in fn.virtual_info


def test_plain_virtual_method() -> None:
    ctx = make_context()
    cur = method("virtual int get ( ) const", "get", result="int", virtual=True)

    fn = parse_member_function(ctx, cur)
    assert fn == MemberFunction(
        id=ctx.get_entity_id(cur),
        name="get",
        return_type=BuiltinType("int"),
        cv_qualifier=CvQualifier.CONST,
        virtual_info=VirtualFlags(0),
    )
    assert fn.is_virtual
    assert not fn.is_pure_virtual


def test_inherited_virtual_method() -> None:
    # no 'virtual' keyword, but the front end says it is virtual
    ctx = make_context()
    cur = method("void f ( ) final", "f", virtual=True)

    assert parse_member_function(ctx, cur) == MemberFunction(
        id=ctx.get_entity_id(cur),
        name="f",
        return_type=BuiltinType("void"),
        virtual_info=VirtualFlags.FINAL | VirtualFlags.OVERRIDE,
    )


def test_method_virtual_mismatch() -> None:
    ctx = make_context()
    cur = method("virtual void f ( )", "f")

    with pytest.raises(VirtualInfoMismatch):
        parse_member_function(ctx, cur)


def test_method_ref_qualified_defaulted_operator() -> None:
    ctx = make_context()
    arg = param("", "X &&")
    cur = method(
        "X & operator = ( X && ) & = default",
        "operator=",
        result="X &",
        params=[arg],
        definition=True,
    )

    assert parse_member_function(ctx, cur) == MemberFunction(
        id=ctx.get_entity_id(cur),
        name="operator=",
        return_type=UnexposedType("X &"),
        parameters=(
            FunctionParameter(
                id=ctx.get_entity_id(arg), name="", type=UnexposedType("X &&")
            ),
        ),
        ref_qualifier=ReferenceQualifier.LVALUE,
        body_kind=BodyKind.DEFAULTED,
    )


def test_method_call_operator() -> None:
    ctx = make_context()
    x = param("x")
    cur = method(
        "constexpr int operator ( ) ( int x ) const && { return x ; }",
        "operator()",
        result="int",
        params=[x],
        definition=True,
    )

    assert parse_member_function(ctx, cur) == MemberFunction(
        id=ctx.get_entity_id(cur),
        name="operator()",
        return_type=BuiltinType("int"),
        parameters=(
            FunctionParameter(id=ctx.get_entity_id(x), name="x", type=BuiltinType("int")),
        ),
        constexpr=True,
        cv_qualifier=CvQualifier.CONST,
        ref_qualifier=ReferenceQualifier.RVALUE,
        body_kind=BodyKind.DEFINITION,
    )


def test_method_noexcept_condition() -> None:
    ctx = make_context()
    other = param("other", "T &")
    cur = method(
        "void swap ( T & other ) noexcept ( noexcept ( other . swap ( other ) ) )",
        "swap",
        params=[other],
    )

    fn = parse_member_function(ctx, cur)
    assert fn.noexcept == UnexposedExpression(
        BuiltinType("bool"), tuple(tokenize("noexcept ( other . swap ( other ) )"))
    )


def test_method_wrong_kind() -> None:
    ctx = make_context()
    cur = function("void f ( )", "f")

    with pytest.raises(
        CxxContractError, match="expected a CXX_METHOD cursor, got FUNCTION_DECL"
    ):
        parse_member_function(ctx, cur)


#
# Parameters
#


def failing_expression_parser(context: ParseContext, cursor: FakeCursor) -> Expression:
    toks = list(cursor.get_tokens())
    if toks[0].value == "bad_expr":
        raise CxxParseError("unable to parse 'bad_expr'", cursor)
    return parse_expression(context, cursor)


def test_parameter_default_not_parsed() -> None:
    ctx = make_context(expression_parser=failing_expression_parser)
    a = param("a")
    x = param("x", default="bad_expr ( )")
    cur = function("void f ( int a , int x = bad_expr ( ) )", "f", params=[a, x])

    fn = parse_function(ctx, cur)
    assert fn == Function(
        id=ctx.get_entity_id(cur),
        name="f",
        return_type=BuiltinType("void"),
        parameters=(
            FunctionParameter(id=ctx.get_entity_id(a), name="a", type=BuiltinType("int")),
        ),
    )

    assert isinstance(ctx.logger, CollectingDiagnosticLogger)
    assert ctx.logger.diagnostics == [
        (
            "libclang parser",
            Diagnostic("unable to parse 'bad_expr'", Location(FILENAME, 1, 1)),
        )
    ]


def test_parameter_siblings_still_built() -> None:
    ctx = make_context(expression_parser=failing_expression_parser)
    params = [
        param("a", default="bad_expr ( )"),
        param("b", default="1"),
        param("c", default="bad_expr ( 2 )"),
        param("d"),
    ]
    cur = function(
        "void f ( int a = bad_expr ( ) , int b = 1 , int c = bad_expr ( 2 ) , int d )",
        "f",
        params=params,
    )

    fn = parse_function(ctx, cur)
    assert [p.name for p in fn.parameters] == ["b", "d"]
    assert fn.parameters[0].default == LiteralExpression(BuiltinType("int"), "1")
    assert isinstance(ctx.logger, CollectingDiagnosticLogger)
    assert len(ctx.logger.diagnostics) == 2


def test_parameter_defaults() -> None:
    ctx = make_context()
    a = param("a", default="4 + 2")
    s = param("s", "std::string", default="std :: string ( )")
    p = param("p", "void *", default="nullptr")
    cur = function(
        "int fn ( int a = 4 + 2 , std :: string s = std :: string ( ) , void * p = nullptr )",
        "fn",
        result="int",
        params=[a, s, p],
    )

    assert parse_function(ctx, cur) == Function(
        id=ctx.get_entity_id(cur),
        name="fn",
        return_type=BuiltinType("int"),
        parameters=(
            FunctionParameter(
                id=ctx.get_entity_id(a),
                name="a",
                type=BuiltinType("int"),
                default=UnexposedExpression(
                    BuiltinType("int"), tuple(tokenize("4 + 2"))
                ),
            ),
            FunctionParameter(
                id=ctx.get_entity_id(s),
                name="s",
                type=UnexposedType("std::string"),
                default=UnexposedExpression(
                    UnexposedType("std::string"), tuple(tokenize("std :: string ( )"))
                ),
            ),
            FunctionParameter(
                id=ctx.get_entity_id(p),
                name="p",
                type=UnexposedType("void *"),
                default=LiteralExpression(UnexposedType("void *"), "nullptr"),
            ),
        ),
    )


def test_parameter_type_reference_ignored() -> None:
    ctx = make_context()
    x = param("x", "Foo")
    x.children.append(FakeCursor(CursorKind.OTHER, spelling="Foo"))
    cur = function("void f ( Foo x )", "f", params=[x])

    fn = parse_function(ctx, cur)
    assert fn.parameters == (
        FunctionParameter(id=ctx.get_entity_id(x), name="x", type=UnexposedType("Foo")),
    )


def test_parameter_two_defaults() -> None:
    ctx = make_context()
    x = param("x")
    x.children.extend([expr("1"), expr("2")])
    cur = function("void f ( int x = 1 )", "f", params=[x])

    with pytest.raises(
        CxxContractError, match="unexpected child cursor of function parameter"
    ):
        parse_function(ctx, cur)


def test_parameters_registered() -> None:
    ctx = make_context()
    a = param("a")
    cur = function("void f ( int a )", "f", params=[a])

    fn = parse_function(ctx, cur)
    assert ctx.index.lookup(fn.parameters[0].id) == fn.parameters[0]
    assert ctx.index.lookup(fn.id) == fn


#
# Free functions
#


def test_static_constexpr_definition() -> None:
    ctx = make_context()
    x = param("x")
    cur = function(
        "static constexpr int sq ( int x ) { return x * x ; }",
        "sq",
        result="int",
        params=[x],
        storage_class=StorageClass.STATIC,
        definition=True,
    )

    assert parse_function(ctx, cur) == Function(
        id=ctx.get_entity_id(cur),
        name="sq",
        return_type=BuiltinType("int"),
        parameters=(
            FunctionParameter(id=ctx.get_entity_id(x), name="x", type=BuiltinType("int")),
        ),
        constexpr=True,
        storage_class=StorageClass.STATIC,
        body_kind=BodyKind.DEFINITION,
    )


def test_variadic_function() -> None:
    ctx = make_context()
    fmt = param("fmt", "const char *")
    cur = function(
        "extern int printf ( const char * fmt , ... )",
        "printf",
        result="int",
        params=[fmt],
        variadic=True,
        storage_class=StorageClass.EXTERN,
    )

    fn = parse_function(ctx, cur)
    assert fn == Function(
        id=ctx.get_entity_id(cur),
        name="printf",
        return_type=BuiltinType("int"),
        parameters=(
            FunctionParameter(
                id=ctx.get_entity_id(fmt), name="fmt", type=UnexposedType("const char *")
            ),
        ),
        vararg=True,
        storage_class=StorageClass.EXTERN,
    )
    assert fn.format_params() == "(const char * fmt, ...)"


def test_deleted_function() -> None:
    ctx = make_context()
    arg = param("", "double")
    cur = function("void g ( double ) = delete", "g", params=[arg], definition=True)

    fn = parse_function(ctx, cur)
    assert fn.body_kind == BodyKind.DELETED
    assert fn.parameters == (
        FunctionParameter(id=ctx.get_entity_id(arg), name="", type=BuiltinType("double")),
    )


def test_noexcept_function() -> None:
    ctx = make_context()
    cur = function("void f ( ) noexcept ( false )", "f")

    assert parse_function(ctx, cur).noexcept == LiteralExpression(
        BuiltinType("bool"), "false"
    )


def test_explicit_specialization() -> None:
    ctx = make_context()
    arg = param("", "int")
    cur = function("template < > void h < int > ( int )", "h", params=[arg])

    fn = parse_function(ctx, cur)
    assert fn.name == "h"
    assert len(fn.parameters) == 1


def test_function_returning_function_pointer() -> None:
    ctx = make_context()
    a = param("a")
    cur = function(
        "void ( * getfn ( int a ) ) ( int )",
        "getfn",
        result="void (*)(int)",
        params=[a],
    )

    assert parse_function(ctx, cur) == Function(
        id=ctx.get_entity_id(cur),
        name="getfn",
        return_type=UnexposedType("void (*)(int)"),
        parameters=(
            FunctionParameter(id=ctx.get_entity_id(a), name="a", type=BuiltinType("int")),
        ),
    )


def test_function_trailing_return_with_body() -> None:
    ctx = make_context()
    cur = function(
        "auto fn ( ) -> std :: vector < int > { return { } ; }",
        "fn",
        result="std::vector<int>",
        definition=True,
    )

    assert parse_function(ctx, cur) == Function(
        id=ctx.get_entity_id(cur),
        name="fn",
        return_type=UnexposedType("std::vector<int>"),
        body_kind=BodyKind.DEFINITION,
    )


@pytest.mark.parametrize(
    "source, err",
    [
        ("virtual void f ( )", "free function cannot be virtual"),
        ("void f ( ) const", "unexpected tokens in function suffix"),
        ("void f ( ) &&", "unexpected tokens in function suffix"),
        ("void f ( ) override", "unexpected tokens in function suffix"),
        ("void f ( ) = 0", "unexpected tokens in function suffix"),
        ("void g ( )", "function name 'f' not found in declaration"),
        ("void f ;", "expected function parameters"),
    ],
)
def test_function_contract_errors(source: str, err: str) -> None:
    ctx = make_context()
    cur = function(source, "f")

    with pytest.raises(CxxContractError, match=err):
        parse_function(ctx, cur)


def test_function_wrong_kind() -> None:
    ctx = make_context()
    cur = method("void f ( )", "f")

    with pytest.raises(
        CxxContractError, match="expected a FUNCTION_DECL cursor, got CXX_METHOD"
    ):
        parse_function(ctx, cur)


def test_static_member_function() -> None:
    ctx = make_context()
    cur = method(
        "static int count ( ) noexcept",
        "count",
        result="int",
        static=True,
        storage_class=StorageClass.STATIC,
    )

    assert try_parse_static_function(ctx, cur) == Function(
        id=ctx.get_entity_id(cur),
        name="count",
        return_type=BuiltinType("int"),
        noexcept=NOEXCEPT_TRUE,
        storage_class=StorageClass.STATIC,
    )


def test_non_static_member_function() -> None:
    ctx = make_context()
    cur = method("int count ( ) const", "count", result="int")

    assert try_parse_static_function(ctx, cur) is None
    assert len(ctx.index) == 0


def test_free_function_record_rejects_qualifiers() -> None:
    with pytest.raises(CxxContractError):
        Function(
            id=1,
            name="f",
            return_type=BuiltinType("void"),
            cv_qualifier=CvQualifier.CONST,
        )


#
# Conversion operators
#


def test_explicit_conversion_op() -> None:
    ctx = make_context()
    cur = conversion("explicit operator bool ( ) const noexcept", "bool")

    assert parse_conversion_op(ctx, cur) == ConversionOp(
        id=ctx.get_entity_id(cur),
        name="",
        return_type=BuiltinType("bool"),
        cv_qualifier=CvQualifier.CONST,
        noexcept=NOEXCEPT_TRUE,
        explicit=True,
    )


def test_conditionally_explicit_conversion_op() -> None:
    ctx = make_context()
    cur = conversion("explicit ( N > 1 ) operator int ( ) const", "int")

    op = parse_conversion_op(ctx, cur)
    assert op.explicit
    assert op.cv_qualifier == CvQualifier.CONST


def test_constexpr_conversion_op() -> None:
    ctx = make_context()
    cur = conversion(
        "constexpr operator int ( ) const & { return 1 ; }", "int", definition=True
    )

    assert parse_conversion_op(ctx, cur) == ConversionOp(
        id=ctx.get_entity_id(cur),
        name="",
        return_type=BuiltinType("int"),
        constexpr=True,
        cv_qualifier=CvQualifier.CONST,
        ref_qualifier=ReferenceQualifier.LVALUE,
        body_kind=BodyKind.DEFINITION,
    )


def test_pure_virtual_conversion_op() -> None:
    ctx = make_context()
    cur = conversion(
        "virtual operator std :: function < void ( int ) > ( ) const = 0",
        "std::function<void (int)>",
        virtual=True,
        pure_virtual=True,
    )

    assert parse_conversion_op(ctx, cur) == ConversionOp(
        id=ctx.get_entity_id(cur),
        name="",
        return_type=UnexposedType("std::function<void (int)>"),
        cv_qualifier=CvQualifier.CONST,
        virtual_info=VirtualFlags.PURE,
    )


def test_conversion_op_without_operator() -> None:
    ctx = make_context()
    cur = conversion("int x", "int")

    with pytest.raises(CxxContractError, match="without 'operator'"):
        parse_conversion_op(ctx, cur)


def test_conversion_op_wrong_kind() -> None:
    ctx = make_context()
    cur = method("operator int ( ) const", "operator int", result="int")

    with pytest.raises(CxxContractError, match="CONVERSION_FUNCTION"):
        parse_conversion_op(ctx, cur)


#
# Registration
#


def test_redeclaration_shares_id() -> None:
    ctx = make_context()
    first = parse_function(ctx, function("void f ( )", "f"))
    second = parse_function(ctx, function("void f ( )", "f"))

    assert first.id == second.id
    assert ctx.index.lookup_declarations(first.id) == [first, second]


def test_duplicate_definition() -> None:
    ctx = make_context()
    parse_function(ctx, function("void f ( ) { }", "f", definition=True))

    with pytest.raises(CxxContractError, match="duplicate definition"):
        parse_function(ctx, function("void f ( ) { }", "f", definition=True))


def test_verbose_tracing(capsys: pytest.CaptureFixture) -> None:
    ctx = make_context(options=ParserOptions(verbose=True))
    parse_member_function(ctx, method("void f ( ) const", "f"))

    out = capsys.readouterr().out
    assert "method f" in out
