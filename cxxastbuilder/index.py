import itertools
import typing

from .errors import CxxContractError
from .types import EntityId, Entity

if typing.TYPE_CHECKING:
    from .cursor import Cursor


class EntityIndex:
    """
    Owns every entity that is built, keyed by its id.

    Ids are allocated per USR, so all declarations of the same function get
    the same id. Only one definition may be registered for an id; any number
    of (forward) declarations may be.
    """

    def __init__(self) -> None:
        self._next_id = itertools.count(1)
        self._ids: typing.Dict[str, EntityId] = {}
        self._definitions: typing.Dict[EntityId, Entity] = {}
        self._declarations: typing.Dict[EntityId, typing.List[Entity]] = {}

    def get_entity_id(self, cursor: "Cursor") -> EntityId:
        usr = cursor.get_usr()
        if not usr:
            # nothing to unify it with
            return next(self._next_id)

        eid = self._ids.get(usr)
        if eid is None:
            eid = next(self._next_id)
            self._ids[usr] = eid
        return eid

    def register_definition(self, entity: Entity) -> None:
        if entity.id in self._definitions:
            raise CxxContractError(f"duplicate definition of entity {entity.id}")
        self._definitions[entity.id] = entity

    def register_forward_declaration(self, entity: Entity) -> None:
        self._declarations.setdefault(entity.id, []).append(entity)

    def lookup(self, eid: EntityId) -> typing.Optional[Entity]:
        """
        Returns the definition of the entity if there is one, otherwise its
        first declaration
        """
        entity = self._definitions.get(eid)
        if entity is not None:
            return entity
        decls = self._declarations.get(eid)
        if decls:
            return decls[0]
        return None

    def lookup_declarations(self, eid: EntityId) -> typing.List[Entity]:
        return list(self._declarations.get(eid, []))

    def __len__(self) -> int:
        return len(self._definitions) + sum(len(d) for d in self._declarations.values())

    def __iter__(self) -> typing.Iterator[Entity]:
        yield from self._definitions.values()
        for decls in self._declarations.values():
            yield from decls
