"""
Builders collect the pieces of a declaration while its tokens are scanned
and then finish into an immutable entity that is handed to the index.
"""

import typing

from .index import EntityIndex
from .types import (
    BodyKind,
    ConversionOp,
    CppType,
    CvQualifier,
    EntityId,
    Expression,
    Function,
    FunctionBase,
    FunctionParameter,
    MemberFunction,
    ReferenceQualifier,
    StorageClass,
    VirtualFlags,
)


def build_parameter(
    index: EntityIndex,
    eid: EntityId,
    name: str,
    type: CppType,
    default: typing.Optional[Expression] = None,
) -> FunctionParameter:
    param = FunctionParameter(eid, name, type, default)
    index.register_forward_declaration(param)
    return param


class _FunctionBuilderBase:
    entity_class: typing.Type[FunctionBase]

    def __init__(self, name: str, return_type: CppType) -> None:
        self._props: typing.Dict[str, typing.Any] = {
            "name": name,
            "return_type": return_type,
        }
        self._parameters: typing.List[FunctionParameter] = []

    def add_parameter(self, param: FunctionParameter) -> None:
        self._parameters.append(param)

    def is_variadic(self) -> None:
        self._props["vararg"] = True

    def is_constexpr(self) -> None:
        self._props["constexpr"] = True

    def noexcept_condition(self, cond: Expression) -> None:
        self._props["noexcept"] = cond

    def finish(
        self, index: EntityIndex, eid: EntityId, body_kind: BodyKind
    ) -> typing.Any:
        entity = self.entity_class(
            id=eid,
            parameters=tuple(self._parameters),
            body_kind=body_kind,
            **self._props,
        )
        if body_kind == BodyKind.DECLARATION:
            index.register_forward_declaration(entity)
        else:
            index.register_definition(entity)
        return entity


class FunctionBuilder(_FunctionBuilderBase):
    entity_class = Function

    def storage_class(self, storage: StorageClass) -> None:
        self._props["storage_class"] = storage


class MemberFunctionBuilder(_FunctionBuilderBase):
    entity_class = MemberFunction

    def cv_ref_qualifier(self, cv: CvQualifier, ref: ReferenceQualifier) -> None:
        self._props["cv_qualifier"] = cv
        self._props["ref_qualifier"] = ref

    def virtual_info(self, flags: VirtualFlags) -> None:
        self._props["virtual_info"] = flags


class ConversionOpBuilder(MemberFunctionBuilder):
    entity_class = ConversionOp

    def __init__(self, return_type: CppType) -> None:
        super().__init__("", return_type)

    def is_explicit(self) -> None:
        self._props["explicit"] = True
