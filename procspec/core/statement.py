"""Call statement templates.

Templates use the SQL-92 callable statement escape syntax::

    {call NAME(? ,? ,?)}        procedure
    {? = call NAME(? ,?)}       function, the leading placeholder is the return value

The separator between placeholders is exactly ``" ,?"``. Templates are cache keys
and wire text for drivers, so the shape must not drift.
"""

import re
from typing import TYPE_CHECKING, Final, NamedTuple, Optional

from sqlglot import exp
from sqlglot.dialects.dialect import Dialect

from procspec.exceptions import ImproperConfigurationError, SQLParsingError

if TYPE_CHECKING:
    from sqlglot.dialects.dialect import DialectType

__all__ = ("CallStatement", "build_call_statement", "parse_call_statement", "render_native_call")

PLACEHOLDER: Final = "?"
PLACEHOLDER_SEPARATOR: Final = " ,?"

CALL_TEMPLATE_PATTERN: Final = re.compile(
    r"^\{\s*(?P<returns>\?\s*=\s*)?call\s+(?P<name>[^\s(){}]+)\s*\((?P<arguments>[^()]*)\)\s*\}$",
    re.IGNORECASE,
)


class CallStatement(NamedTuple):
    """Parsed form of a call template.

    ``parameter_count`` includes the return value slot of a function.
    """

    name: str
    is_procedure: bool
    parameter_count: int

    @property
    def argument_count(self) -> int:
        """Number of placeholders inside the parentheses."""
        return self.parameter_count if self.is_procedure else self.parameter_count - 1


def build_call_statement(name: str, is_procedure: bool, parameter_count: int) -> str:
    """Build the escape-syntax template for a routine.

    Args:
        name: Routine name.
        is_procedure: False for a function, whose return value takes the first placeholder.
        parameter_count: Number of declared parameters, return slot included.

    Raises:
        ImproperConfigurationError: If the name is empty, the count is negative,
            or a function declares no parameter for its return value.

    Returns:
        The call template.
    """
    if not name:
        msg = "Cannot build a call statement without a routine name."
        raise ImproperConfigurationError(msg)
    if parameter_count < 0:
        msg = f"Parameter count must not be negative, got {parameter_count} for {name!r}."
        raise ImproperConfigurationError(msg)
    if not is_procedure and parameter_count < 1:
        msg = f"Function {name!r} must declare a parameter for its return value."
        raise ImproperConfigurationError(msg)

    parts = ["{"]
    if not is_procedure:
        parts.append("? = ")
        parameter_count -= 1
    parts.extend(("call ", name, "("))
    if parameter_count:
        parts.append(PLACEHOLDER)
        parts.append(PLACEHOLDER_SEPARATOR * (parameter_count - 1))
    parts.append(")}")
    return "".join(parts)


def parse_call_statement(template: str) -> CallStatement:
    """Parse a call template produced by :func:`build_call_statement`.

    Raises:
        SQLParsingError: If ``template`` is not a callable statement escape.
    """
    match = CALL_TEMPLATE_PATTERN.match(template.strip())
    if match is None:
        msg = f"Not a callable statement template: {template!r}"
        raise SQLParsingError(msg)
    arguments = match.group("arguments").strip()
    placeholders = [item.strip() for item in arguments.split(",")] if arguments else []
    if any(item != PLACEHOLDER for item in placeholders):
        msg = f"Callable statement arguments must be placeholders: {template!r}"
        raise SQLParsingError(msg)
    is_procedure = match.group("returns") is None
    count = len(placeholders) if is_procedure else len(placeholders) + 1
    return CallStatement(name=match.group("name"), is_procedure=is_procedure, parameter_count=count)


def render_native_call(
    name: str, is_procedure: bool, argument_count: int, dialect: "Optional[DialectType]" = None
) -> str:
    """Render a routine call as plain SQL for drivers without escape syntax support.

    Procedures render as ``CALL name(?, ...)`` and functions as ``SELECT name(?, ...)``,
    with the dialect's positional placeholder. Oracle binds by number
    (``:1, :2``) and selects functions ``FROM dual``. T-SQL runs procedures
    through ``EXEC name ?, ...``.

    Args:
        name: Routine name.
        is_procedure: False for a function.
        argument_count: Number of argument placeholders, return slot excluded.
        dialect: Target sqlglot dialect.

    Returns:
        SQL text for the dialect.
    """
    if argument_count < 0:
        msg = f"Argument count must not be negative, got {argument_count} for {name!r}."
        raise ImproperConfigurationError(msg)
    target = Dialect.get_or_raise(dialect)
    if target == "oracle":
        placeholders = [exp.Placeholder(this=str(index)) for index in range(1, argument_count + 1)]
    else:
        placeholders = [exp.Placeholder() for _ in range(argument_count)]

    if is_procedure and target == "tsql":
        arguments = ", ".join(placeholder.sql(dialect=target) for placeholder in placeholders)
        return f"EXEC {name} {arguments}".rstrip()

    invocation = exp.Anonymous(this=name, expressions=placeholders)
    if is_procedure:
        return f"CALL {invocation.sql(dialect=target, normalize_functions=False)}"
    query = exp.select(invocation)
    if target == "oracle":
        query = query.from_("dual")
    return query.sql(dialect=target, normalize_functions=False)
