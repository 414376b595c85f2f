"""ProcSpec: map plain entities onto stored procedure and function calls."""

from procspec import adapters, core, driver, entity, exceptions, typing, utils
from procspec.__metadata__ import __version__
from procspec.adapters import DBAPIConnection
from procspec.config import ProcedureManagerConfig
from procspec.core import EntityMetadata, MetadataResolver, ParameterDescriptor, build_call_statement
from procspec.driver import ProcedureManager, TransactionManager, TransactionState
from procspec.entity import ParameterSpec, parameter, register_procedure, stored_function, stored_procedure
from procspec.exceptions import (
    BindingError,
    DriverError,
    ImproperConfigurationError,
    MissingProcedureMetadataError,
    NoConnectionError,
    NullEntityError,
    ProcSpecError,
)
from procspec.typing import Direction, SQLType

__all__ = (
    "BindingError",
    "DBAPIConnection",
    "Direction",
    "DriverError",
    "EntityMetadata",
    "ImproperConfigurationError",
    "MetadataResolver",
    "MissingProcedureMetadataError",
    "NoConnectionError",
    "NullEntityError",
    "ParameterDescriptor",
    "ParameterSpec",
    "ProcSpecError",
    "ProcedureManager",
    "ProcedureManagerConfig",
    "SQLType",
    "TransactionManager",
    "TransactionState",
    "__version__",
    "adapters",
    "build_call_statement",
    "core",
    "driver",
    "entity",
    "exceptions",
    "parameter",
    "register_procedure",
    "stored_function",
    "stored_procedure",
    "typing",
    "utils",
)
