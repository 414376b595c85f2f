"""Entity metadata resolution and caching.

Each entity type is resolved once into an :class:`EntityMetadata` holding the
call template and the ordered parameter descriptors. Resolution is pure, so two
threads racing on a never-seen type may both build; only the publish into the
registry is locked and the first published value wins.
"""

import threading
from dataclasses import dataclass, fields, is_dataclass
from operator import attrgetter
from typing import TYPE_CHECKING, Any, Callable, Optional

from mypy_extensions import mypyc_attr

from procspec.core.statement import build_call_statement
from procspec.entity import get_parameter_spec
from procspec.exceptions import ImproperConfigurationError, MissingProcedureMetadataError, ProcSpecError
from procspec.protocols import HasProcedureMetadata
from procspec.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

    from procspec.entity import ParameterSpec
    from procspec.typing import Direction, FieldGetter, FieldSetter, SQLTypeCode

__all__ = ("CallBuilder", "EntityMetadata", "MetadataResolver", "ParameterDescriptor")

logger = get_logger("core.metadata")

CallBuilder = Callable[[str, bool, int], str]


@dataclass(frozen=True)
class ParameterDescriptor:
    """One call parameter: where it goes, its type, its direction and how to reach its value."""

    __slots__ = ("direction", "getter", "name", "position", "setter", "sql_type")

    name: str
    position: int
    sql_type: "SQLTypeCode"
    direction: "Direction"
    getter: "FieldGetter"
    setter: "FieldSetter"


@dataclass(frozen=True)
class EntityMetadata:
    """Resolved call template and parameter descriptors for an entity type."""

    __slots__ = ("call_template", "parameters")

    call_template: str
    parameters: "tuple[ParameterDescriptor, ...]"

    @property
    def placeholder_count(self) -> int:
        """Number of placeholders in ``call_template``."""
        return len(self.parameters)


def _attribute_setter(name: str) -> "FieldSetter":
    def setter(entity: Any, value: Any) -> None:
        setattr(entity, name, value)

    return setter


def _descriptor_from_spec(name: str, spec: "ParameterSpec") -> ParameterDescriptor:
    attribute = spec.attribute or name
    return ParameterDescriptor(
        name=attribute,
        position=spec.position,
        sql_type=spec.sql_type,
        direction=spec.direction,
        getter=spec.getter or attrgetter(attribute),
        setter=spec.setter or _attribute_setter(attribute),
    )


def _iter_parameter_descriptors(entity_type: type) -> "Iterator[ParameterDescriptor]":
    table: Optional[tuple[ParameterSpec, ...]] = getattr(entity_type, "__procedure_parameters__", None)
    if table is not None:
        for index, spec in enumerate(table, start=1):
            yield _descriptor_from_spec(spec.attribute or f"parameter_{index}", spec)
        return
    if not is_dataclass(entity_type):
        return
    for dataclass_field in fields(entity_type):
        spec = get_parameter_spec(dataclass_field)
        if spec is not None:
            yield _descriptor_from_spec(dataclass_field.name, spec)


@mypyc_attr(allow_interpreted_subclasses=False)
class MetadataResolver:
    """Registry of resolved entity metadata keyed by entity type.

    The registry only grows. Lookups read a plain ``dict``; inserts go through a
    lock held for the single ``setdefault``.

    Args:
        builder: Call template builder, :func:`build_call_statement` by default.
    """

    __slots__ = ("_builder", "_lock", "_registry")

    def __init__(self, builder: "Optional[CallBuilder]" = None) -> None:
        self._builder: CallBuilder = builder or build_call_statement
        self._registry: dict[type, EntityMetadata] = {}
        self._lock = threading.Lock()

    def resolve(self, entity_type: type) -> EntityMetadata:
        """Return the metadata of ``entity_type``, building it on first use.

        Raises:
            MissingProcedureMetadataError: If the type declares no procedure.
            ImproperConfigurationError: If the call template cannot be built.
        """
        metadata = self._registry.get(entity_type)
        if metadata is not None:
            return metadata

        built = self._build(entity_type)
        with self._lock:
            return self._registry.setdefault(entity_type, built)

    def _build(self, entity_type: type) -> EntityMetadata:
        if not isinstance(entity_type, HasProcedureMetadata):
            raise MissingProcedureMetadataError(entity_type)
        declaration = entity_type.__stored_procedure__
        parameters = tuple(_iter_parameter_descriptors(entity_type))
        try:
            template = self._builder(declaration.name, declaration.is_procedure, len(parameters))
        except ProcSpecError:
            raise
        except Exception as exc:
            msg = f"Failed to build the call template of {entity_type.__qualname__!r}: {exc}"
            raise ImproperConfigurationError(msg) from exc
        logger.debug("Resolved %s to %s", entity_type.__qualname__, template)
        return EntityMetadata(call_template=template, parameters=parameters)

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._registry

    def __len__(self) -> int:
        return len(self._registry)
