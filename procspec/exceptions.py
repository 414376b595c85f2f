from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, Callable, Optional

from procspec.utils.logging import get_logger

__all__ = (
    "BindingError",
    "DriverError",
    "ImproperConfigurationError",
    "MissingProcedureMetadataError",
    "NoConnectionError",
    "NullEntityError",
    "ProcSpecError",
    "SQLParsingError",
    "run_cleanup",
    "wrap_driver_exceptions",
)

logger = get_logger("exceptions")


class ProcSpecError(Exception):
    """Base exception class from which all ProcSpec exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``ProcSpecError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingProcedureMetadataError(ProcSpecError):
    """The entity type carries no stored procedure declaration."""

    entity_type: Optional[type]

    def __init__(self, entity_type: Optional[type] = None) -> None:
        self.entity_type = entity_type
        if entity_type is None:
            message = "Stored procedure declaration is missing."
        else:
            message = f"Stored procedure declaration is missing on {entity_type.__qualname__!r}."
        super().__init__(message)


class NullEntityError(ProcSpecError):
    """A procedure call was requested without an entity."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Null stored procedure entity is not allowed."
        super().__init__(message)


class NoConnectionError(ProcSpecError):
    """An operation required a database connection and none is bound."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Database connection is missing."
        super().__init__(message)


class BindingError(ProcSpecError):
    """Reading or writing a parameter value failed."""

    position: Optional[int]

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        detail_message = message
        if position is not None:
            detail_message = f"{message} (Position: {position})"
        super().__init__(detail=detail_message)
        self.position = position


class DriverError(ProcSpecError):
    """The underlying connection or statement reported a failure."""


class ImproperConfigurationError(ProcSpecError):
    """Improper configuration or declaration error.

    Raised for invalid procedure declarations and inconsistent manager configuration.
    """


class SQLParsingError(ProcSpecError):
    """Issues parsing a call statement template."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues parsing call statement."
        super().__init__(message)


@contextmanager
def wrap_driver_exceptions(message: str = "An error occurred during the operation.") -> Generator[None, None, None]:
    """Re-raise foreign exceptions as :class:`DriverError`.

    Errors that already belong to the ProcSpec hierarchy pass through untouched.

    Args:
        message: Detail used for the wrapping error.

    Raises:
        DriverError: For any exception that is not a :class:`ProcSpecError`.
    """
    try:
        yield
    except ProcSpecError:
        raise
    except Exception as exc:
        msg = f"{message} {exc}".strip()
        raise DriverError(detail=msg) from exc


def run_cleanup(action: "Callable[[], object]", primary: BaseException, description: str) -> None:
    """Run a cleanup step while ``primary`` is propagating.

    A failing cleanup never replaces ``primary``: it is logged at ERROR and
    attached to ``primary`` as a note where notes are supported.

    Args:
        action: The cleanup to run.
        primary: The error already propagating.
        description: What the cleanup does, used in the log and the note.
    """
    try:
        action()
    except Exception as exc:
        logger.error("%s failed after an earlier failure", description, exc_info=exc)
        if hasattr(primary, "add_note"):
            primary.add_note(f"{description} also failed: {exc!r}")
