"""Unit tests for the PEP 249 adapter."""

from dataclasses import dataclass
from typing import Any, Optional
from unittest.mock import MagicMock, Mock

import pytest

from procspec.adapters.dbapi import DBAPIConnection, DBAPIPreparedCall
from procspec.driver import ProcedureManager
from procspec.entity import parameter, stored_procedure
from procspec.exceptions import DriverError, SQLParsingError
from procspec.typing import Direction, SQLType


@stored_procedure("reserve_seat")
@dataclass
class ReserveSeat:
    flight: Optional[str] = parameter(1)
    seat: Optional[str] = parameter(2, SQLType.VARCHAR, Direction.INOUT)
    confirmation: Optional[str] = parameter(3, SQLType.VARCHAR, Direction.OUT)


class FakeVariable:
    def __init__(self, sql_type: Any) -> None:
        self.sql_type = sql_type
        self.value: Any = None

    def getvalue(self) -> Any:
        return self.value

    def setvalue(self, pos: int, value: Any) -> None:
        self.value = value


@pytest.fixture
def dbapi_connection() -> MagicMock:
    raw = MagicMock()
    raw.cursor.return_value.description = None
    return raw


def test_procedure_uses_callproc(dbapi_connection: MagicMock) -> None:
    cursor = dbapi_connection.cursor.return_value
    cursor.callproc.return_value = ("LH400", "12C", "ABC123")
    entity = ReserveSeat(flight="LH400", seat="12A")

    result = ProcedureManager(DBAPIConnection(dbapi_connection)).call(entity)

    assert result is False
    cursor.callproc.assert_called_once_with("reserve_seat", ["LH400", "12A", None])
    cursor.close.assert_called_once_with()
    assert entity.seat == "12C"
    assert entity.confirmation == "ABC123"
    assert entity.flight == "LH400"


def test_procedure_result_set_indicator(dbapi_connection: MagicMock) -> None:
    cursor = dbapi_connection.cursor.return_value
    cursor.callproc.return_value = ["LH400", "12A", "X"]
    cursor.description = [("seat",)]

    assert ProcedureManager(DBAPIConnection(dbapi_connection)).call(ReserveSeat(flight="LH400")) is True


def test_procedure_without_returned_sequence_keeps_arguments(dbapi_connection: MagicMock) -> None:
    cursor = dbapi_connection.cursor.return_value
    cursor.callproc.return_value = None
    entity = ReserveSeat(flight="LH400", seat="12A")

    ProcedureManager(DBAPIConnection(dbapi_connection)).call(entity)

    assert entity.seat == "12A"
    assert entity.confirmation is None


def test_variable_factory_supplies_output_arguments(dbapi_connection: MagicMock) -> None:
    cursor = dbapi_connection.cursor.return_value
    created: list[FakeVariable] = []
    seen_inputs: list[Any] = []

    def factory(target_cursor: Any, sql_type: Any) -> FakeVariable:
        assert target_cursor is cursor
        variable = FakeVariable(sql_type)
        created.append(variable)
        return variable

    def callproc(name: str, arguments: list[Any]) -> list[Any]:
        seen_inputs.append(arguments[1].getvalue())
        arguments[1].value = "14F"
        arguments[2].value = "XYZ789"
        return arguments

    cursor.callproc.side_effect = callproc
    entity = ReserveSeat(flight="LH400", seat="12A")

    ProcedureManager(DBAPIConnection(dbapi_connection, variable_factory=factory)).call(entity)

    assert len(created) == 2
    assert [variable.sql_type for variable in created] == [SQLType.VARCHAR, SQLType.VARCHAR]
    assert seen_inputs == ["12A"]
    assert entity.flight == "LH400"
    assert entity.seat == "14F"
    assert entity.confirmation == "XYZ789"


def test_function_renders_select(dbapi_connection: MagicMock) -> None:
    cursor = dbapi_connection.cursor.return_value
    cursor.fetchone.return_value = (42,)
    prepared = DBAPIConnection(dbapi_connection, dialect="sqlite").prepare_call("{? = call seat_count(? ,?)}")

    prepared.register_out_parameter(1, SQLType.INTEGER)
    prepared.set_parameter(2, "LH400")
    prepared.set_parameter(3, "economy")

    assert prepared.execute() is False
    cursor.execute.assert_called_once_with("SELECT seat_count(?, ?)", ["LH400", "economy"])
    assert prepared.get_parameter(1) == 42
    assert prepared.get_parameter(2) == "LH400"


def test_function_without_row_returns_none(dbapi_connection: MagicMock) -> None:
    dbapi_connection.cursor.return_value.fetchone.return_value = None
    prepared = DBAPIConnection(dbapi_connection).prepare_call("{? = call seat_count()}")

    prepared.execute()
    assert prepared.get_parameter(1) is None


def test_position_out_of_range(dbapi_connection: MagicMock) -> None:
    prepared = DBAPIConnection(dbapi_connection).prepare_call("{call reserve_seat(?)}")
    with pytest.raises(DriverError, match="out of range"):
        prepared.set_parameter(2, "x")


def test_get_parameter_before_execute(dbapi_connection: MagicMock) -> None:
    prepared = DBAPIConnection(dbapi_connection).prepare_call("{call reserve_seat(?)}")
    with pytest.raises(DriverError, match="before execute"):
        prepared.get_parameter(1)


def test_prepare_rejects_non_template(dbapi_connection: MagicMock) -> None:
    with pytest.raises(SQLParsingError):
        DBAPIConnection(dbapi_connection).prepare_call("SELECT 1")
    dbapi_connection.cursor.assert_not_called()


def test_prepared_call_exposes_statement(dbapi_connection: MagicMock) -> None:
    prepared = DBAPIConnection(dbapi_connection).prepare_call("{call reserve_seat(? ,?)}")
    assert isinstance(prepared, DBAPIPreparedCall)
    assert prepared.statement.name == "reserve_seat"
    assert prepared.statement.parameter_count == 2


def test_transaction_operations_delegate() -> None:
    raw = Mock()
    raw.autocommit = True
    adapter = DBAPIConnection(raw)

    adapter.set_autocommit(False)
    assert raw.autocommit is False
    adapter.commit()
    adapter.rollback()
    adapter.close()

    raw.commit.assert_called_once_with()
    raw.rollback.assert_called_once_with()
    raw.close.assert_called_once_with()
    assert adapter.connection is raw


def test_autocommit_method_is_called() -> None:
    class MethodAutocommitConnection:
        def __init__(self) -> None:
            self.modes: list[bool] = []

        def autocommit(self, value: bool) -> None:
            self.modes.append(value)

    raw = MethodAutocommitConnection()
    adapter = DBAPIConnection(raw)  # type: ignore[arg-type]

    adapter.set_autocommit(False)
    adapter.set_autocommit(True)

    assert raw.modes == [False, True]
    assert callable(raw.autocommit)


def test_autocommit_falls_back_to_isolation_level() -> None:
    raw = Mock(spec=["cursor", "commit", "rollback", "close", "isolation_level"])
    raw.isolation_level = "DEFERRED"
    adapter = DBAPIConnection(raw)

    adapter.set_autocommit(False)
    assert raw.isolation_level == ""
    adapter.set_autocommit(True)
    assert raw.isolation_level is None


def test_autocommit_unsupported_is_reported() -> None:
    raw = Mock(spec=["cursor", "commit", "rollback", "close"])

    with pytest.raises(DriverError, match="does not support switching autocommit"):
        DBAPIConnection(raw).set_autocommit(False)


def test_driver_error_during_callproc_is_wrapped(dbapi_connection: MagicMock) -> None:
    cursor = dbapi_connection.cursor.return_value
    cursor.callproc.side_effect = RuntimeError("ORA-06550: wrong number of arguments")

    with pytest.raises(DriverError, match="ORA-06550"):
        ProcedureManager(DBAPIConnection(dbapi_connection)).call(ReserveSeat(flight="LH400"))
    cursor.close.assert_called_once_with()
