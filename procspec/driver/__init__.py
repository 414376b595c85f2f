"""Invocation engine and transaction control."""

from procspec.driver._manager import ProcedureManager
from procspec.driver._transaction import TransactionManager, TransactionState

__all__ = ("ProcedureManager", "TransactionManager", "TransactionState")
