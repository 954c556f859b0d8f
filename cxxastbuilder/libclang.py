"""
Adapter that lets the assemblers work on ``clang.cindex`` cursors.

libclang knows whether a method is virtual or pure virtual, but it doesn't
tell whether it overrides anything; that is found by looking through the
base classes for a virtual method with the same name and signature.
"""

import logging
import re
import typing

import clang.cindex

from .context import ParseContext
from .cursor import CursorKind
from .errors import CxxParseError
from .options import ParserOptions
from .tokfmt import Location, Token
from .types import BuiltinType, CppType, StorageClass, UnexposedType

logger = logging.getLogger("cxxastbuilder.libclang")

_storage_classes = {
    "NONE": StorageClass.NONE,
    "AUTO": StorageClass.AUTO,
    "REGISTER": StorageClass.REGISTER,
    "STATIC": StorageClass.STATIC,
    "EXTERN": StorageClass.EXTERN,
}

_builtin_type_kinds = {
    "VOID",
    "BOOL",
    "CHAR_U",
    "UCHAR",
    "CHAR16",
    "CHAR32",
    "USHORT",
    "UINT",
    "ULONG",
    "ULONGLONG",
    "UINT128",
    "CHAR_S",
    "SCHAR",
    "WCHAR",
    "SHORT",
    "INT",
    "LONG",
    "LONGLONG",
    "INT128",
    "HALF",
    "FLOAT",
    "DOUBLE",
    "LONGDOUBLE",
    "FLOAT128",
    "NULLPTR",
}

_record_kinds = {
    clang.cindex.CursorKind.CLASS_DECL,
    clang.cindex.CursorKind.STRUCT_DECL,
    clang.cindex.CursorKind.UNION_DECL,
    clang.cindex.CursorKind.CLASS_TEMPLATE,
}

_function_kinds = {
    clang.cindex.CursorKind.FUNCTION_DECL,
    clang.cindex.CursorKind.CXX_METHOD,
    clang.cindex.CursorKind.CONVERSION_FUNCTION,
}

_open_brackets = {"(", "[", "{"}
_close_brackets = {")", "]", "}"}

# canonical spelling of a parameter of the enclosing class template
_template_param = re.compile(r"type-parameter-0-(\d+)")


def configure_libclang(libclang_path: typing.Optional[str] = None) -> None:
    """
    Points clang.cindex at a specific libclang. This can only be done
    before the library is first used.
    """
    if not libclang_path:
        return
    if clang.cindex.Config.loaded:
        logger.debug("libclang already loaded, ignoring %s", libclang_path)
        return
    clang.cindex.Config.set_library_file(libclang_path)


def _location(loc: "clang.cindex.SourceLocation") -> typing.Optional[Location]:
    if loc.file is None:
        return None
    return Location(loc.file.name, loc.line, loc.column)


class _Signature(typing.NamedTuple):
    """
    What an overriding method has to agree on with the method it overrides.
    The return type is left out, it may be covariant.
    """

    spelling: str
    params: typing.Tuple[str, ...]
    is_const: bool


def _canonical_spelling(
    ctype: "clang.cindex.Type", template_args: typing.Sequence[str]
) -> str:
    spelling = ctype.get_canonical().spelling
    if template_args:

        def substitute(m: "re.Match") -> str:
            idx = int(m.group(1))
            if idx < len(template_args) and template_args[idx]:
                return template_args[idx]
            return m.group(0)

        spelling = _template_param.sub(substitute, spelling)
    # spacing differs between substituted and written types
    return "".join(spelling.split())


def _method_signature(
    method: "clang.cindex.Cursor", template_args: typing.Sequence[str] = ()
) -> typing.Optional[_Signature]:
    ftype = method.type
    if ftype.kind != clang.cindex.TypeKind.FUNCTIONPROTO:
        return None
    params = tuple(
        _canonical_spelling(arg, template_args) for arg in ftype.argument_types()
    )
    return _Signature(method.spelling, params, method.is_const_method())


def _resolve_base(
    base_spec: "clang.cindex.Cursor",
) -> typing.Tuple[typing.Optional["clang.cindex.Cursor"], typing.List[str]]:
    """
    Returns the class whose members are checked for a base specifier, and
    the template arguments to substitute into the types of its members
    """
    decl = base_spec.type.get_declaration()
    if decl is not None:
        definition = decl.get_definition()
        if definition is not None:
            decl = definition
        if any(
            c.kind == clang.cindex.CursorKind.CXX_METHOD for c in decl.get_children()
        ):
            return decl, []

    # libclang doesn't visit the members of an implicit instantiation such
    # as B<int>, so look at the template itself
    for ref in base_spec.get_children():
        if ref.kind != clang.cindex.CursorKind.TEMPLATE_REF:
            continue
        template = ref.referenced
        if template is None:
            break
        definition = template.get_definition()
        if definition is not None:
            template = definition

        canonical = base_spec.type.get_canonical()
        template_args = []
        for i in range(canonical.get_num_template_arguments()):
            arg = canonical.get_template_argument_type(i)
            if arg.kind == clang.cindex.TypeKind.INVALID:
                template_args.append("")
            else:
                template_args.append(arg.get_canonical().spelling)
        return template, template_args

    return decl, []


def _find_virtual_in_bases(
    record: "clang.cindex.Cursor",
    signature: _Signature,
    seen: typing.Set[str],
) -> bool:
    for child in record.get_children():
        if child.kind != clang.cindex.CursorKind.CXX_BASE_SPECIFIER:
            continue

        base, template_args = _resolve_base(child)
        if base is None:
            continue

        usr = base.get_usr()
        if usr in seen:
            continue
        seen.add(usr)

        for member in base.get_children():
            if (
                member.kind == clang.cindex.CursorKind.CXX_METHOD
                and member.spelling == signature.spelling
                and member.is_virtual_method()
                and _method_signature(member, template_args) == signature
            ):
                return True

        if _find_virtual_in_bases(base, signature, seen):
            return True

    return False


def _default_value_offset(parm: "clang.cindex.Cursor") -> typing.Optional[int]:
    # offset of the '=' that starts the default value of a parameter
    depth = 0
    for tok in parm.get_tokens():
        value = tok.spelling
        if value in _open_brackets:
            depth += 1
        elif value in _close_brackets:
            depth -= 1
        elif value == "=" and depth == 0:
            return tok.location.offset
    return None


class ClangCursor:
    """
    Wraps a ``clang.cindex.Cursor`` to provide the :class:`.Cursor` protocol
    """

    def __init__(self, cursor: "clang.cindex.Cursor") -> None:
        self.cursor = cursor
        self.kind = CursorKind.from_name(cursor.kind.name)

    def __repr__(self) -> str:
        return f"ClangCursor({self.cursor.kind.name}, {self.spelling!r})"

    @property
    def spelling(self) -> str:
        return self.cursor.spelling

    @property
    def type(self) -> "clang.cindex.Type":
        return self.cursor.type

    @property
    def result_type(self) -> "clang.cindex.Type":
        return self.cursor.result_type

    @property
    def storage_class(self) -> StorageClass:
        return _storage_classes.get(self.cursor.storage_class.name, StorageClass.NONE)

    @property
    def location(self) -> typing.Optional[Location]:
        return _location(self.cursor.location)

    def get_usr(self) -> str:
        return self.cursor.get_usr()

    def get_children(self) -> typing.Iterator["ClangCursor"]:
        kind = self.cursor.kind
        if kind in _function_kinds:
            # PARM_DECL children also include the parameters of a returned
            # function pointer, get_arguments() only has the function's own
            for arg in self.cursor.get_arguments():
                yield ClangCursor(arg)
            for child in self.cursor.get_children():
                if child.kind != clang.cindex.CursorKind.PARM_DECL:
                    yield ClangCursor(child)
        elif kind == clang.cindex.CursorKind.PARM_DECL:
            # array bounds and template arguments are expressions too, only
            # what follows the '=' is the default value
            eq = _default_value_offset(self.cursor)
            for child in self.cursor.get_children():
                if child.kind.is_expression() and (
                    eq is None or child.extent.start.offset < eq
                ):
                    continue
                yield ClangCursor(child)
        else:
            for child in self.cursor.get_children():
                yield ClangCursor(child)

    def get_tokens(self) -> typing.Iterator[Token]:
        for tok in self.cursor.get_tokens():
            yield Token(tok.spelling, tok.kind.name.lower(), _location(tok.location))

    def is_expression(self) -> bool:
        return self.cursor.kind.is_expression()

    def is_definition(self) -> bool:
        return self.cursor.is_definition()

    def is_variadic(self) -> bool:
        ftype = self.cursor.type
        if ftype.kind != clang.cindex.TypeKind.FUNCTIONPROTO:
            return False
        return ftype.is_function_variadic()

    def is_static_method(self) -> bool:
        return self.cursor.is_static_method()

    def is_virtual_method(self) -> bool:
        return self.cursor.is_virtual_method()

    def is_pure_virtual_method(self) -> bool:
        return self.cursor.is_pure_virtual_method()

    def has_overridden_cursors(self) -> bool:
        parent = self.cursor.semantic_parent
        if parent is None or parent.kind not in _record_kinds:
            return False
        signature = _method_signature(self.cursor)
        if signature is None:
            return False
        return _find_virtual_in_bases(parent, signature, set())


def parse_clang_type(context: ParseContext, ctype: "clang.cindex.Type") -> CppType:
    if (
        ctype.kind.name in _builtin_type_kinds
        and not ctype.is_const_qualified()
        and not ctype.is_volatile_qualified()
    ):
        return BuiltinType(ctype.spelling)
    return UnexposedType(ctype.spelling)


def parse_translation_unit(
    filename: str,
    content: typing.Optional[str] = None,
    options: typing.Optional[ParserOptions] = None,
) -> "clang.cindex.TranslationUnit":
    """
    Runs libclang on a file. If content is given, it is used instead of the
    contents of the file on disk.
    """
    if options is None:
        options = ParserOptions()

    configure_libclang(options.libclang_path)

    unsaved_files = None
    if content is not None:
        unsaved_files = [(filename, content)]

    index = clang.cindex.Index.create()
    try:
        return index.parse(
            filename, args=options.clang_args, unsaved_files=unsaved_files
        )
    except clang.cindex.TranslationUnitLoadError as e:
        raise CxxParseError(f"{filename}: unable to parse: {e}") from e


def iter_diagnostics(
    tu: "clang.cindex.TranslationUnit",
) -> typing.Iterator[typing.Tuple[typing.Optional[Location], str]]:
    """
    Warnings and errors reported by libclang itself
    """
    for diag in tu.diagnostics:
        if diag.severity >= clang.cindex.Diagnostic.Warning:
            yield _location(diag.location), diag.spelling
