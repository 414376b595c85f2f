"""PEP 249 adapter.

Wraps any DB-API 2.0 connection so the procedure manager can drive it.
Procedures go through ``cursor.callproc``; functions are rendered as
``SELECT name(?, ...)`` for the configured dialect and their scalar result is
exposed as the return value parameter at position 1.
"""

from typing import TYPE_CHECKING, Any, Callable, Optional

from procspec.core.statement import parse_call_statement, render_native_call
from procspec.exceptions import DriverError
from procspec.protocols import VariableProtocol
from procspec.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlglot.dialects.dialect import DialectType

    from procspec.core.statement import CallStatement
    from procspec.protocols import DBAPIConnectionProtocol, DBAPICursorProtocol
    from procspec.typing import SQLTypeCode

__all__ = ("DBAPIConnection", "DBAPIPreparedCall", "VariableFactory")

logger = get_logger("adapters.dbapi")

VariableFactory = Callable[[Any, "SQLTypeCode"], Any]
"""Creates a driver bind variable for an OUT or INOUT parameter, e.g. ``cursor.var(int)`` on oracledb.

INOUT variables receive their input through ``setvalue(0, value)`` before the call.
"""


class DBAPIPreparedCall:
    """A callable statement backed by a DB-API cursor.

    Args:
        cursor: Cursor owned by this call, closed by :meth:`close`.
        statement: Parsed call template.
        dialect: sqlglot dialect used to render function calls.
        variable_factory: Creates bind variables for OUT and INOUT parameters.
    """

    __slots__ = ("_cursor", "_dialect", "_inputs", "_outputs", "_results", "_statement", "_variable_factory")

    def __init__(
        self,
        cursor: "DBAPICursorProtocol",
        statement: "CallStatement",
        dialect: "Optional[DialectType]" = None,
        variable_factory: "Optional[VariableFactory]" = None,
    ) -> None:
        self._cursor = cursor
        self._statement = statement
        self._dialect = dialect
        self._variable_factory = variable_factory
        self._inputs: dict[int, Any] = {}
        self._outputs: dict[int, SQLTypeCode] = {}
        self._results: Optional[list[Any]] = None

    @property
    def statement(self) -> "CallStatement":
        return self._statement

    def _check_position(self, position: int) -> None:
        if not 1 <= position <= self._statement.parameter_count:
            msg = f"Parameter position {position} is out of range for {self._statement.name!r}"
            raise DriverError(msg)

    def set_parameter(self, position: int, value: Any) -> None:
        self._check_position(position)
        self._inputs[position] = value

    def register_out_parameter(self, position: int, sql_type: "SQLTypeCode") -> None:
        self._check_position(position)
        self._outputs[position] = sql_type

    def _argument(self, position: int) -> Any:
        if position in self._outputs and self._variable_factory is not None:
            variable = self._variable_factory(self._cursor, self._outputs[position])
            if position in self._inputs:
                variable.setvalue(0, self._inputs[position])
            return variable
        return self._inputs.get(position)

    def execute(self) -> bool:
        statement = self._statement
        if statement.is_procedure:
            arguments = [self._argument(position) for position in range(1, statement.parameter_count + 1)]
            returned = self._cursor.callproc(statement.name, arguments)
            self._results = list(returned) if returned is not None else arguments
            return self._cursor.description is not None

        arguments = [self._argument(position) for position in range(2, statement.parameter_count + 1)]
        sql = render_native_call(statement.name, False, statement.argument_count, self._dialect)
        logger.debug("Executing %s", sql)
        self._cursor.execute(sql, arguments)
        row = self._cursor.fetchone()
        self._results = [row[0] if row else None, *arguments]
        return False

    def get_parameter(self, position: int) -> Any:
        self._check_position(position)
        if self._results is None:
            msg = f"Output parameters of {self._statement.name!r} are not available before execute"
            raise DriverError(msg)
        value = self._results[position - 1]
        if isinstance(value, VariableProtocol):
            return value.getvalue()
        return value

    def close(self) -> None:
        self._cursor.close()


class DBAPIConnection:
    """Expose a DB-API connection as a callable-statement connection.

    Args:
        connection: The PEP 249 connection. Ownership passes to this adapter.
        dialect: sqlglot dialect used to render function calls.
        variable_factory: Creates bind variables for OUT and INOUT parameters.
    """

    __slots__ = ("_connection", "_dialect", "_variable_factory")

    def __init__(
        self,
        connection: "DBAPIConnectionProtocol",
        *,
        dialect: "Optional[DialectType]" = None,
        variable_factory: "Optional[VariableFactory]" = None,
    ) -> None:
        self._connection = connection
        self._dialect = dialect
        self._variable_factory = variable_factory

    @property
    def connection(self) -> "DBAPIConnectionProtocol":
        return self._connection

    def prepare_call(self, sql: str) -> DBAPIPreparedCall:
        statement = parse_call_statement(sql)
        return DBAPIPreparedCall(
            self._connection.cursor(), statement, dialect=self._dialect, variable_factory=self._variable_factory
        )

    def set_autocommit(self, autocommit: bool) -> None:
        """Switch the driver's autocommit mode.

        Drivers expose this as an ``autocommit`` method (pymysql), an
        ``autocommit`` attribute (psycopg, oracledb, pyodbc, sqlite3 on Python
        3.12+) or only through ``isolation_level`` (older sqlite3).

        Raises:
            DriverError: If the connection offers none of these.
        """
        connection = self._connection
        switch = getattr(connection, "autocommit", None)
        if callable(switch):
            switch(autocommit)
        elif hasattr(connection, "autocommit"):
            connection.autocommit = autocommit  # type: ignore[attr-defined]
        elif hasattr(connection, "isolation_level"):
            connection.isolation_level = None if autocommit else ""  # type: ignore[attr-defined]
        else:
            msg = f"{type(connection).__qualname__} does not support switching autocommit"
            raise DriverError(msg)

    def commit(self) -> None:
        self._connection.commit()

    def rollback(self) -> None:
        self._connection.rollback()

    def close(self) -> None:
        self._connection.close()
