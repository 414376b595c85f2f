"""Explicit transaction control over a bound connection."""

from collections.abc import Generator
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from procspec.exceptions import NoConnectionError, run_cleanup, wrap_driver_exceptions
from procspec.utils.logging import get_logger

if TYPE_CHECKING:
    from procspec.protocols import CallableConnectionProtocol

__all__ = ("TransactionManager", "TransactionState")

logger = get_logger("driver.transaction")


class TransactionState(Enum):
    """Transaction mode of the bound connection."""

    AUTOCOMMIT = "autocommit"
    MANUAL = "manual"

    def __str__(self) -> str:
        return self.value


class TransactionManager:
    """Drive a connection through begin, commit, rollback and end.

    ``commit()`` and ``rollback()`` keep the connection in manual mode; leaving it
    takes an explicit ``end()``, which restores autocommit whether or not the
    work was committed.

    Args:
        connection_getter: Returns the currently bound connection, or None.
    """

    __slots__ = ("_connection_getter", "_state")

    def __init__(self, connection_getter: "Callable[[], Optional[CallableConnectionProtocol]]") -> None:
        self._connection_getter = connection_getter
        self._state = TransactionState.AUTOCOMMIT

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def in_transaction(self) -> bool:
        return self._state is TransactionState.MANUAL

    def _require_connection(self) -> "CallableConnectionProtocol":
        connection = self._connection_getter()
        if connection is None:
            raise NoConnectionError
        return connection

    def _warn(self, message: str) -> None:
        logger.warning(message, extra={"extra_fields": {"transaction_state": str(self._state)}})

    def begin(self) -> None:
        """Disable autocommit and enter manual mode."""
        connection = self._require_connection()
        if self._state is TransactionState.MANUAL:
            self._warn("begin() called while a manual transaction is already open")
        with wrap_driver_exceptions("Failed to begin transaction."):
            connection.set_autocommit(False)
        self._state = TransactionState.MANUAL

    def commit(self) -> None:
        """Persist changes made since the last commit, rollback or begin."""
        connection = self._require_connection()
        if self._state is TransactionState.AUTOCOMMIT:
            self._warn("commit() called outside a manual transaction")
        with wrap_driver_exceptions("Failed to commit transaction."):
            connection.commit()

    def rollback(self) -> None:
        """Discard changes made since the last commit, rollback or begin."""
        connection = self._require_connection()
        if self._state is TransactionState.AUTOCOMMIT:
            self._warn("rollback() called outside a manual transaction")
        with wrap_driver_exceptions("Failed to rollback transaction."):
            connection.rollback()

    def end(self) -> None:
        """Re-enable autocommit and leave manual mode."""
        connection = self._require_connection()
        with wrap_driver_exceptions("Failed to end transaction."):
            connection.set_autocommit(True)
        self._state = TransactionState.AUTOCOMMIT

    @contextmanager
    def transaction(self) -> Generator["TransactionManager", None, None]:
        """Run a block inside a manual transaction.

        Commits when the block completes, rolls back when it raises, and always
        ends the transaction. Once the block or the commit has failed, a failing
        rollback or end is logged and noted on that error instead of replacing it.
        """
        self.begin()
        try:
            yield self
        except BaseException as exc:
            run_cleanup(self.rollback, exc, "Rolling back the transaction")
            run_cleanup(self.end, exc, "Ending the transaction")
            raise
        try:
            self.commit()
        except BaseException as exc:
            run_cleanup(self.end, exc, "Ending the transaction")
            raise
        self.end()

    def reset(self) -> None:
        """Forget the tracked state, e.g. after the bound connection was replaced."""
        self._state = TransactionState.AUTOCOMMIT
