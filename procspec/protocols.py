"""Runtime-checkable protocols for the collaborators ProcSpec consumes.

The invocation engine never imports a database driver. It talks to any object
shaped like :class:`CallableConnectionProtocol`, and reads procedure metadata
off any type shaped like :class:`HasProcedureMetadata`.
"""

from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from procspec.entity import ProcedureDeclaration
    from procspec.typing import SQLTypeCode

__all__ = (
    "CallableConnectionProtocol",
    "DBAPIConnectionProtocol",
    "DBAPICursorProtocol",
    "HasProcedureMetadata",
    "PreparedCallProtocol",
    "VariableProtocol",
)


@runtime_checkable
class PreparedCallProtocol(Protocol):
    """A prepared callable statement."""

    def set_parameter(self, position: int, value: Any) -> None:
        """Bind an input value at ``position``."""
        ...

    def register_out_parameter(self, position: int, sql_type: "SQLTypeCode") -> None:
        """Declare ``position`` as an output parameter of ``sql_type``."""
        ...

    def execute(self) -> bool:
        """Execute the call.

        Returns:
            True if the first result is a row set, False for an update count or no result.
        """
        ...

    def get_parameter(self, position: int) -> Any:
        """Read the driver-returned value at ``position``."""
        ...

    def close(self) -> None:
        """Release the statement."""
        ...


@runtime_checkable
class CallableConnectionProtocol(Protocol):
    """A connection able to prepare callable statements and drive transactions."""

    def prepare_call(self, sql: str) -> PreparedCallProtocol:
        """Prepare a callable statement from an escape-syntax template."""
        ...

    def set_autocommit(self, autocommit: bool) -> None:
        """Enable or disable implicit per-statement commit."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    def close(self) -> None:
        """Close the connection."""
        ...


@runtime_checkable
class HasProcedureMetadata(Protocol):
    """Protocol for entity types declaring a stored procedure."""

    __stored_procedure__: "ProcedureDeclaration"


@runtime_checkable
class DBAPICursorProtocol(Protocol):
    """The subset of a PEP 249 cursor used by the DB-API adapter."""

    description: Optional[Any]

    def execute(self, operation: str, parameters: Any = ...) -> Any: ...

    def callproc(self, procname: str, parameters: Any = ...) -> Any: ...

    def fetchone(self) -> Any: ...

    def close(self) -> None: ...


@runtime_checkable
class DBAPIConnectionProtocol(Protocol):
    """The subset of a PEP 249 connection used by the DB-API adapter."""

    def cursor(self) -> Any: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class VariableProtocol(Protocol):
    """Driver bind variables (e.g. ``oracledb`` ``Var``) carrying INOUT and OUT values."""

    def getvalue(self) -> Any:
        """Return the value held by the variable."""
        ...

    def setvalue(self, pos: int, value: Any) -> None:
        """Store an input value, used for INOUT parameters."""
        ...
