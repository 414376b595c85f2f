"""Parameter binding between entities and prepared calls."""

from typing import TYPE_CHECKING, Any

from procspec.exceptions import BindingError
from procspec.typing import Direction

if TYPE_CHECKING:
    from collections.abc import Iterable

    from procspec.core.metadata import ParameterDescriptor
    from procspec.protocols import PreparedCallProtocol

__all__ = ("bind_inputs", "bind_outputs")


def _read_field(entity: Any, descriptor: "ParameterDescriptor") -> Any:
    try:
        return descriptor.getter(entity)
    except Exception as exc:
        msg = f"Cannot read field {descriptor.name!r} of {type(entity).__qualname__}: {exc}"
        raise BindingError(msg, descriptor.position) from exc


def _write_field(entity: Any, descriptor: "ParameterDescriptor", value: Any) -> None:
    try:
        descriptor.setter(entity, value)
    except Exception as exc:
        msg = f"Cannot write field {descriptor.name!r} of {type(entity).__qualname__}: {exc}"
        raise BindingError(msg, descriptor.position) from exc


def bind_inputs(
    prepared_call: "PreparedCallProtocol", entity: Any, descriptors: "Iterable[ParameterDescriptor]"
) -> None:
    """Apply input values and register output parameters before execution.

    IN and INOUT parameters receive the entity's field value. OUT and INOUT
    parameters are registered with their SQL type. Descriptors are visited in
    declaration order.

    Args:
        prepared_call: The prepared call.
        entity: Source of input values.
        descriptors: Parameter descriptors of the entity type.

    Raises:
        BindingError: If a field cannot be read or the driver rejects a parameter.
    """
    for descriptor in descriptors:
        direction = descriptor.direction
        if direction.is_input:
            value = _read_field(entity, descriptor)
            try:
                prepared_call.set_parameter(descriptor.position, value)
            except Exception as exc:
                msg = f"Driver rejected input parameter {descriptor.name!r}: {exc}"
                raise BindingError(msg, descriptor.position) from exc
        if direction.is_output:
            try:
                prepared_call.register_out_parameter(descriptor.position, descriptor.sql_type)
            except Exception as exc:
                msg = f"Driver rejected output parameter {descriptor.name!r}: {exc}"
                raise BindingError(msg, descriptor.position) from exc


def bind_outputs(
    prepared_call: "PreparedCallProtocol", entity: Any, descriptors: "Iterable[ParameterDescriptor]"
) -> None:
    """Copy driver-returned OUT and INOUT values into the entity.

    IN parameters are never read back.

    Raises:
        BindingError: If a value cannot be read from the driver or written to the entity.
    """
    for descriptor in descriptors:
        if descriptor.direction is Direction.IN:
            continue
        try:
            value = prepared_call.get_parameter(descriptor.position)
        except Exception as exc:
            msg = f"Cannot read output parameter {descriptor.name!r}: {exc}"
            raise BindingError(msg, descriptor.position) from exc
        _write_field(entity, descriptor, value)
