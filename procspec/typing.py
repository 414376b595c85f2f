from enum import Enum, IntEnum
from typing import Any, Callable, Union

from typing_extensions import TypeAlias, TypeVar

__all__ = (
    "Direction",
    "EntityT",
    "FieldGetter",
    "FieldSetter",
    "SQLType",
    "SQLTypeCode",
)

EntityT = TypeVar("EntityT", default=Any)
"""Type variable for stored procedure entities."""

FieldGetter: TypeAlias = Callable[[Any], Any]
FieldSetter: TypeAlias = Callable[[Any, Any], None]


class Direction(Enum):
    """Parameter flow relative to the stored procedure."""

    IN = "IN"
    OUT = "OUT"
    INOUT = "INOUT"

    @property
    def is_input(self) -> bool:
        """True when a value is sent to the procedure."""
        return self is not Direction.OUT

    @property
    def is_output(self) -> bool:
        """True when the procedure returns a value for this parameter."""
        return self is not Direction.IN

    def __str__(self) -> str:
        return self.value


class SQLType(IntEnum):
    """Generic SQL type codes.

    The numeric values are the ``java.sql.Types`` constants, which is the
    vocabulary callable-statement drivers use for output parameter registration.
    """

    BIT = -7
    TINYINT = -6
    SMALLINT = 5
    INTEGER = 4
    BIGINT = -5
    FLOAT = 6
    REAL = 7
    DOUBLE = 8
    NUMERIC = 2
    DECIMAL = 3
    CHAR = 1
    VARCHAR = 12
    LONGVARCHAR = -1
    DATE = 91
    TIME = 92
    TIMESTAMP = 93
    BINARY = -2
    VARBINARY = -3
    LONGVARBINARY = -4
    NULL = 0
    OTHER = 1111
    JAVA_OBJECT = 2000
    DISTINCT = 2001
    STRUCT = 2002
    ARRAY = 2003
    BLOB = 2004
    CLOB = 2005
    REF = 2006
    DATALINK = 70
    BOOLEAN = 16
    ROWID = -8
    NCHAR = -15
    NVARCHAR = -9
    LONGNVARCHAR = -16
    NCLOB = 2011
    SQLXML = 2009
    REF_CURSOR = 2012
    TIME_WITH_TIMEZONE = 2013
    TIMESTAMP_WITH_TIMEZONE = 2014


SQLTypeCode: TypeAlias = Union[SQLType, int]
