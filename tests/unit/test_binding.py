"""Unit tests for parameter binding."""

from dataclasses import dataclass
from typing import Any, Optional
from unittest.mock import MagicMock, call

import pytest

from procspec.core.binding import bind_inputs, bind_outputs
from procspec.core.metadata import MetadataResolver, ParameterDescriptor
from procspec.entity import parameter, stored_procedure
from procspec.exceptions import BindingError
from procspec.typing import Direction, SQLType


@stored_procedure("mixed_directions")
@dataclass
class Mixed:
    first: Any = parameter(1, SQLType.INTEGER, Direction.IN)
    second: Any = parameter(2, SQLType.VARCHAR, Direction.OUT)
    third: Any = parameter(3, SQLType.NUMERIC, Direction.INOUT)


@stored_procedure("frozen_proc")
@dataclass(frozen=True)
class Frozen:
    value: Optional[int] = parameter(1, SQLType.INTEGER, Direction.OUT)


@pytest.fixture
def resolver() -> MetadataResolver:
    return MetadataResolver()


def test_bind_inputs_follows_direction_protocol(resolver: MetadataResolver) -> None:
    statement = MagicMock()
    entity = Mixed(first=10, second="ignored", third=30)

    bind_inputs(statement, entity, resolver.resolve(Mixed).parameters)

    assert statement.mock_calls == [
        call.set_parameter(1, 10),
        call.register_out_parameter(2, SQLType.VARCHAR),
        call.set_parameter(3, 30),
        call.register_out_parameter(3, SQLType.NUMERIC),
    ]


def test_bind_outputs_reads_only_output_positions(resolver: MetadataResolver) -> None:
    statement = MagicMock()
    statement.get_parameter.side_effect = lambda position: f"out-{position}"
    entity = Mixed(first=10, second=None, third=30)

    bind_outputs(statement, entity, resolver.resolve(Mixed).parameters)

    assert statement.get_parameter.call_args_list == [call(2), call(3)]
    assert entity.first == 10
    assert entity.second == "out-2"
    assert entity.third == "out-3"


def test_bind_inputs_wraps_driver_rejection(resolver: MetadataResolver) -> None:
    statement = MagicMock()
    statement.set_parameter.side_effect = TypeError("unsupported type")

    with pytest.raises(BindingError, match="Position: 1") as exc_info:
        bind_inputs(statement, Mixed(first=object()), resolver.resolve(Mixed).parameters)

    assert exc_info.value.position == 1
    assert isinstance(exc_info.value.__cause__, TypeError)


def test_bind_inputs_wraps_registration_failure(resolver: MetadataResolver) -> None:
    statement = MagicMock()
    statement.register_out_parameter.side_effect = ValueError("bad type code")

    with pytest.raises(BindingError) as exc_info:
        bind_inputs(statement, Mixed(), resolver.resolve(Mixed).parameters)

    assert exc_info.value.position == 2


def test_bind_inputs_wraps_field_access_failure() -> None:
    class Broken:
        pass

    def getter(entity: Any) -> Any:
        raise PermissionError("denied")

    descriptor = ParameterDescriptor(
        name="secret",
        position=1,
        sql_type=SQLType.VARCHAR,
        direction=Direction.IN,
        getter=getter,
        setter=lambda entity, value: None,
    )

    statement = MagicMock()
    with pytest.raises(BindingError, match="secret"):
        bind_inputs(statement, Broken(), [descriptor])
    statement.set_parameter.assert_not_called()


def test_bind_outputs_wraps_write_failure(resolver: MetadataResolver) -> None:
    statement = MagicMock()
    statement.get_parameter.return_value = 5

    with pytest.raises(BindingError, match="value"):
        bind_outputs(statement, Frozen(), resolver.resolve(Frozen).parameters)


def test_bind_outputs_wraps_driver_read_failure(resolver: MetadataResolver) -> None:
    statement = MagicMock()
    statement.get_parameter.side_effect = RuntimeError("no such parameter")

    with pytest.raises(BindingError) as exc_info:
        bind_outputs(statement, Mixed(), resolver.resolve(Mixed).parameters)

    assert exc_info.value.position == 2
