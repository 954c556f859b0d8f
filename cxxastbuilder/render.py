"""
Turns parsed declarations back into C++ declarations, for documentation and
for checking what was recovered from the tokens.
"""

import os
import typing

from mako.template import Template

from .simple import ParsedData
from .types import (
    BodyKind,
    ConversionOp,
    CvQualifier,
    Function,
    FunctionBase,
    LiteralExpression,
    ReferenceQualifier,
    StorageClass,
    VirtualFlags,
)

DECLARATIONS_TEMPLATE = Template(
    filename=os.path.join(os.path.dirname(__file__), "templates", "declarations.hpp")
)

_body_suffixes = {
    BodyKind.DECLARATION: ";",
    BodyKind.DEFINITION: " {}",
    BodyKind.DEFAULTED: " = default;",
    BodyKind.DELETED: " = delete;",
}


def format_declaration(fn: FunctionBase) -> str:
    parts: typing.List[str] = []

    if isinstance(fn, Function) and fn.storage_class in (
        StorageClass.STATIC,
        StorageClass.EXTERN,
    ):
        parts.append(fn.storage_class.value)

    virt = fn.virtual_info
    if virt is not None and not virt & VirtualFlags.OVERRIDE:
        parts.append("virtual")
    if fn.constexpr:
        parts.append("constexpr")

    if isinstance(fn, ConversionOp):
        if fn.explicit:
            parts.append("explicit")
        parts.append(f"operator {fn.return_type.format()}{fn.format_params()}")
    else:
        parts.append(f"{fn.return_type.format()} {fn.name}{fn.format_params()}")

    if fn.cv_qualifier != CvQualifier.NONE:
        parts.append(fn.cv_qualifier.value)
    if fn.ref_qualifier != ReferenceQualifier.NONE:
        parts.append(fn.ref_qualifier.value)

    noexcept = fn.noexcept
    if noexcept is not None:
        if isinstance(noexcept, LiteralExpression) and noexcept.value == "true":
            parts.append("noexcept")
        else:
            parts.append(f"noexcept({noexcept.format()})")

    if virt is not None:
        if virt & VirtualFlags.OVERRIDE:
            parts.append("override")
        if virt & VirtualFlags.FINAL:
            parts.append("final")

    decl = " ".join(parts)
    if virt is not None and virt & VirtualFlags.PURE:
        return f"{decl} = 0;"
    return decl + _body_suffixes[fn.body_kind]


def render_declarations(data: ParsedData, source: str) -> str:
    return DECLARATIONS_TEMPLATE.render(
        data=data, source=source, format_declaration=format_declaration
    )
