"""

The simple collector walks a translation unit and returns a data structure
with every function-like declaration in it.

The :func:`parse_string` and :func:`parse_file` functions are a great place
to start:

.. code-block:: python

    from cxxastbuilder.simple import parse_string

    content = '''
        struct X {
            virtual int fn() const noexcept = 0;
        };
    '''

    parsed_data = parse_string(content)

See below for the contents of the returned :class:`ParsedData`.

"""

import inspect
import os
import typing
from dataclasses import dataclass, field

from .context import ParseContext
from .cursor import Cursor, CursorKind
from .diagnostics import CollectingDiagnosticLogger, Diagnostic
from .errors import CxxContractError, CxxParseError
from .function_parser import (
    PRODUCER,
    parse_conversion_op,
    parse_function,
    parse_member_function,
    try_parse_static_function,
)
from .index import EntityIndex
from .libclang import (
    ClangCursor,
    iter_diagnostics,
    parse_clang_type,
    parse_translation_unit,
)
from .options import ParserOptions
from .types import ConversionOp, Function, MemberFunction

#
# Data structure
#


@dataclass
class ParsedData:
    """
    Container for information parsed by the :func:`parse_file` and
    :func:`parse_string` functions. Declarations are listed in the order
    they were found, regardless of the scope they were found in.
    """

    #: Free functions and static member functions
    functions: typing.List[Function] = field(default_factory=list)

    #: Non-static member functions
    member_functions: typing.List[MemberFunction] = field(default_factory=list)

    conversion_ops: typing.List[ConversionOp] = field(default_factory=list)

    #: (producer, diagnostic) for everything that could not be parsed
    diagnostics: typing.List[typing.Tuple[str, Diagnostic]] = field(
        default_factory=list
    )

    #: Owns all of the entities, including the function parameters
    index: EntityIndex = field(
        default_factory=EntityIndex, repr=False, compare=False
    )


# cursors that can contain functions
_scope_kinds = {
    CursorKind.NAMESPACE,
    CursorKind.LINKAGE_SPEC,
    CursorKind.CLASS_DECL,
    CursorKind.STRUCT_DECL,
    CursorKind.UNION_DECL,
}


class DeclarationCollector:
    """
    Hands every function-like cursor to the matching assembler and stores
    the result. A declaration that raises :class:`.CxxParseError` is logged
    and left out; a :class:`.CxxContractError` stops the whole walk.

    You probably don't want to use this directly, use :func:`parse_file`
    or :func:`parse_string` instead.
    """

    def __init__(
        self, context: ParseContext, main_file: typing.Optional[str] = None
    ) -> None:
        self.context = context
        self.main_file = main_file
        self.data = ParsedData(index=context.index)

    def _in_main_file(self, cur: Cursor) -> bool:
        if self.main_file is None:
            return True
        location = cur.location
        return location is not None and location.filename == self.main_file

    def visit(self, cur: Cursor) -> None:
        for child in cur.get_children():
            if not self._in_main_file(child):
                continue

            kind = child.kind
            if kind in _scope_kinds:
                self.visit(child)
            else:
                try:
                    self._visit_declaration(child)
                except CxxParseError as e:
                    diag = e.get_diagnostic()
                    if diag.location is None:
                        diag = diag._replace(location=child.location)
                    self.context.logger.log(PRODUCER, diag)
                except CxxContractError as e:
                    location = child.location
                    if location is None:
                        raise
                    msg = f"{location.filename}:{location.lineno}: {e.msg}"
                    raise CxxContractError(msg, e.cursor) from e

    def _visit_declaration(self, cur: Cursor) -> None:
        kind = cur.kind
        context = self.context
        data = self.data

        if kind == CursorKind.FUNCTION_DECL:
            data.functions.append(parse_function(context, cur))
        elif kind == CursorKind.CXX_METHOD:
            fn = try_parse_static_function(context, cur)
            if fn is not None:
                data.functions.append(fn)
            else:
                data.member_functions.append(parse_member_function(context, cur))
        elif kind == CursorKind.CONVERSION_FUNCTION:
            data.conversion_ops.append(parse_conversion_op(context, cur))


def collect_declarations(
    context: ParseContext, root: Cursor, main_file: typing.Optional[str] = None
) -> ParsedData:
    """
    Walks the children of root (usually the translation unit). If main_file
    is set, declarations found in other files are skipped.
    """
    collector = DeclarationCollector(context, main_file)
    collector.visit(root)
    return collector.data


def _parse_tu(
    filename: str, content: typing.Optional[str], options: ParserOptions
) -> ParsedData:
    logger = CollectingDiagnosticLogger()
    context = ParseContext(logger=logger, options=options, type_parser=parse_clang_type)

    tu = parse_translation_unit(filename, content, options)
    for location, message in iter_diagnostics(tu):
        logger.log("libclang", Diagnostic(message, location))

    main_file = tu.spelling if options.main_file_only else None
    data = collect_declarations(context, ClangCursor(tu.cursor), main_file)
    data.diagnostics = logger.diagnostics
    return data


def parse_string(
    content: str,
    *,
    filename: str = "input.cpp",
    options: typing.Optional[ParserOptions] = None,
    cleandoc: bool = False,
) -> ParsedData:
    """
    Simple function to parse C++ source code and return a data structure
    """
    if cleandoc:
        content = inspect.cleandoc(content)

    return _parse_tu(filename, content, options if options else ParserOptions())


def parse_file(
    filename: typing.Union[str, os.PathLike],
    *,
    options: typing.Optional[ParserOptions] = None,
) -> ParsedData:
    """
    Simple function to parse a C++ file and return a data structure
    """
    filename = os.fsdecode(filename)
    return _parse_tu(filename, None, options if options else ParserOptions())
