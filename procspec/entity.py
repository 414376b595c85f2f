"""Declarative stored procedure metadata for entity classes.

Entities are dataclasses whose fields map onto procedure parameters::

    @stored_procedure("update_balance")
    @dataclass
    class UpdateBalance:
        account_id: int = parameter(1, SQLType.INTEGER)
        amount: Decimal = parameter(2, SQLType.NUMERIC)
        balance: Decimal = parameter(3, SQLType.NUMERIC, Direction.OUT)
        note: str = ""  # not a parameter

Types that cannot be dataclasses register an explicit descriptor table with
:func:`register_procedure` instead.
"""

from dataclasses import MISSING, dataclass, field, is_dataclass
from typing import TYPE_CHECKING, Any, Callable, Final, Optional, TypeVar

from procspec.exceptions import ImproperConfigurationError
from procspec.typing import Direction, SQLType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from procspec.typing import FieldGetter, FieldSetter, SQLTypeCode

__all__ = (
    "PARAMETER_METADATA_KEY",
    "ParameterSpec",
    "ProcedureDeclaration",
    "get_parameter_spec",
    "parameter",
    "register_procedure",
    "stored_function",
    "stored_procedure",
)

T = TypeVar("T", bound=type)

PARAMETER_METADATA_KEY: Final = "procspec.parameter"


@dataclass(frozen=True)
class ProcedureDeclaration:
    """Name of the target routine and whether it is a procedure or a function."""

    name: str
    is_procedure: bool = True


@dataclass(frozen=True)
class ParameterSpec:
    """Declared metadata for one procedure parameter.

    ``attribute`` names the entity attribute backing the parameter. ``getter`` and
    ``setter`` override attribute access when given.
    """

    position: int
    sql_type: "SQLTypeCode" = SQLType.VARCHAR
    direction: Direction = Direction.IN
    attribute: Optional[str] = None
    getter: "Optional[FieldGetter]" = None
    setter: "Optional[FieldSetter]" = None


def parameter(
    position: int,
    sql_type: "SQLTypeCode" = SQLType.VARCHAR,
    direction: Direction = Direction.IN,
    *,
    default: Any = None,
    default_factory: "Optional[Callable[[], Any]]" = None,
    **field_kwargs: Any,
) -> Any:
    """Declare a dataclass field as a procedure parameter.

    Args:
        position: 1-based placeholder position in the call statement.
        sql_type: SQL type code used to register output parameters.
        direction: Parameter direction.
        default: Field default value.
        default_factory: Field default factory, takes precedence over ``default``.
        **field_kwargs: Passed through to :func:`dataclasses.field`.

    Returns:
        A dataclass field carrying the parameter metadata.
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[PARAMETER_METADATA_KEY] = ParameterSpec(position=position, sql_type=sql_type, direction=direction)
    if default_factory is not None:
        return field(default_factory=default_factory, metadata=metadata, **field_kwargs)
    return field(default=default, metadata=metadata, **field_kwargs)


def stored_procedure(name: str, *, procedure: bool = True) -> "Callable[[T], T]":
    """Class decorator declaring the routine an entity maps to.

    Args:
        name: Routine name, optionally schema qualified.
        procedure: False when the routine is a function returning a value.

    Returns:
        The decorator.
    """
    if not name:
        msg = "Stored procedure name must not be empty."
        raise ImproperConfigurationError(msg)

    def decorator(cls: T) -> T:
        if not is_dataclass(cls):
            cls = dataclass(cls)  # type: ignore[assignment]
        cls.__stored_procedure__ = ProcedureDeclaration(name=name, is_procedure=procedure)  # type: ignore[attr-defined]
        return cls

    return decorator


def stored_function(name: str) -> "Callable[[T], T]":
    """Shorthand for ``stored_procedure(name, procedure=False)``."""
    return stored_procedure(name, procedure=False)


def register_procedure(
    entity_type: type, name: str, parameters: "Sequence[ParameterSpec]", *, procedure: bool = True
) -> None:
    """Attach procedure metadata to a type with an explicit parameter table.

    Every spec must name an ``attribute`` or supply both ``getter`` and ``setter``.

    Args:
        entity_type: The entity class.
        name: Routine name.
        parameters: Parameter table in binding order.
        procedure: False when the routine is a function returning a value.

    Raises:
        ImproperConfigurationError: If a spec has no way to reach its value.
    """
    if not name:
        msg = "Stored procedure name must not be empty."
        raise ImproperConfigurationError(msg)
    for spec in parameters:
        if spec.attribute is None and (spec.getter is None or spec.setter is None):
            msg = f"Parameter at position {spec.position} needs an attribute name or a getter/setter pair."
            raise ImproperConfigurationError(msg)
    entity_type.__stored_procedure__ = ProcedureDeclaration(name=name, is_procedure=procedure)  # type: ignore[attr-defined]
    entity_type.__procedure_parameters__ = tuple(parameters)  # type: ignore[attr-defined]


def get_parameter_spec(dataclass_field: Any) -> "Optional[ParameterSpec]":
    """Return the parameter metadata of a dataclass field, if any."""
    spec = dataclass_field.metadata.get(PARAMETER_METADATA_KEY, MISSING)
    return None if spec is MISSING else spec
