"""Stored procedure invocation engine."""

from typing import TYPE_CHECKING, Any, Optional

from procspec.core.binding import bind_inputs, bind_outputs
from procspec.core.metadata import MetadataResolver
from procspec.driver._transaction import TransactionManager
from procspec.exceptions import (
    NoConnectionError,
    NullEntityError,
    ProcSpecError,
    run_cleanup,
    wrap_driver_exceptions,
)
from procspec.utils.logging import correlation_scope, get_logger

if TYPE_CHECKING:
    from types import TracebackType

    from typing_extensions import Self

    from procspec.core.metadata import EntityMetadata
    from procspec.protocols import CallableConnectionProtocol, PreparedCallProtocol

__all__ = ("ProcedureManager",)

logger = get_logger("driver.manager")


class ProcedureManager:
    """Call stored procedures and functions described by entity instances.

    One manager drives one connection at a time and supports a single in-flight
    call; use separate managers for concurrent work. Managers may share a
    :class:`MetadataResolver`.

    Args:
        connection: Connection to bind, may be supplied later per call.
        resolver: Metadata resolver, a private one by default.
    """

    __slots__ = ("_connection", "_resolver", "_transaction_manager")

    def __init__(
        self,
        connection: "Optional[CallableConnectionProtocol]" = None,
        *,
        resolver: "Optional[MetadataResolver]" = None,
    ) -> None:
        self._connection = connection
        self._resolver = resolver if resolver is not None else MetadataResolver()
        self._transaction_manager = TransactionManager(lambda: self._connection)

    @property
    def connection(self) -> "Optional[CallableConnectionProtocol]":
        return self._connection

    @connection.setter
    def connection(self, connection: "Optional[CallableConnectionProtocol]") -> None:
        if connection is not self._connection:
            self._transaction_manager.reset()
        self._connection = connection

    @property
    def resolver(self) -> MetadataResolver:
        return self._resolver

    @property
    def transaction_manager(self) -> TransactionManager:
        return self._transaction_manager

    def call(self, entity: Any, connection: "Optional[CallableConnectionProtocol]" = None) -> bool:
        """Invoke the routine declared by an entity.

        Without ``connection`` the bound connection is used. A supplied
        ``connection`` is bound first, so later calls without one reuse it.

        Output parameters are written back into the entity after a successful
        execute. Log records emitted during the call share one correlation ID,
        the caller's if one is already bound.

        Returns:
            The driver's result-shape indicator: True if the first result is a row
            set, False for an update count or no result. It is not a success flag.

        Raises:
            NullEntityError: If the entity is None.
            NoConnectionError: If no connection is bound.
            ProcSpecError: For any metadata, binding or driver failure.
        """
        if connection is not None:
            self.connection = connection

        if entity is None:
            raise NullEntityError
        if self._connection is None:
            raise NoConnectionError
        with correlation_scope():
            return self._execute(self._connection, entity)

    def _execute(self, connection: "CallableConnectionProtocol", entity: Any) -> bool:
        metadata = self._resolver.resolve(type(entity))
        call_fields = {"call_template": metadata.call_template, "entity": type(entity).__qualname__}
        logger.debug("Calling %s", metadata.call_template, extra={"extra_fields": call_fields})

        with wrap_driver_exceptions(f"Failed to prepare {metadata.call_template}."):
            statement = connection.prepare_call(metadata.call_template)

        try:
            result = self._run(statement, entity, metadata, call_fields)
        except BaseException as exc:
            run_cleanup(statement.close, exc, "Closing the prepared call")
            raise
        with wrap_driver_exceptions("Failed to close prepared call."):
            statement.close()
        return result

    @staticmethod
    def _run(
        statement: "PreparedCallProtocol", entity: Any, metadata: "EntityMetadata", call_fields: "dict[str, Any]"
    ) -> bool:
        try:
            bind_inputs(statement, entity, metadata.parameters)
            with wrap_driver_exceptions(f"Failed to execute {metadata.call_template}."):
                result = bool(statement.execute())
            bind_outputs(statement, entity, metadata.parameters)
        except ProcSpecError as exc:
            logger.debug(
                "Call %s failed",
                metadata.call_template,
                exc_info=True,
                extra={"extra_fields": {**call_fields, "error": type(exc).__name__}},
            )
            raise
        logger.debug("Call %s returned %s", metadata.call_template, result, extra={"extra_fields": call_fields})
        return result

    def close(self) -> None:
        """Close and unbind the connection.

        The connection is unbound even when closing it fails.

        Raises:
            DriverError: If the driver fails to close the connection.
        """
        connection = self._connection
        if connection is None:
            return
        try:
            with wrap_driver_exceptions("Failed to close connection."):
                connection.close()
        finally:
            self._connection = None
            self._transaction_manager.reset()

    def __enter__(self) -> "Self":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        if exc_val is None:
            self.close()
            return
        run_cleanup(self.close, exc_val, "Closing the connection")
