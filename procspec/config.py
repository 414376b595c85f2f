from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from procspec.core.metadata import MetadataResolver
from procspec.driver import ProcedureManager
from procspec.exceptions import ImproperConfigurationError, NoConnectionError, run_cleanup, wrap_driver_exceptions
from procspec.utils.logging import get_logger

if TYPE_CHECKING:
    from procspec.protocols import CallableConnectionProtocol

__all__ = ("ConnectionFactory", "ProcedureManagerConfig")

logger = get_logger("config")

ConnectionFactory = Callable[[], "CallableConnectionProtocol"]


@dataclass
class ProcedureManagerConfig:
    """Configuration for creating :class:`ProcedureManager` instances.

    Supply either a ready ``connection`` or a ``connection_factory`` called once
    per manager. Neither is required: a manager without a connection can still be
    given one per call.
    """

    connection: "Optional[CallableConnectionProtocol]" = None
    connection_factory: "Optional[ConnectionFactory]" = None
    share_metadata_cache: bool = True
    _resolver: Optional[MetadataResolver] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.connection is not None and self.connection_factory is not None:
            msg = "Provide either 'connection' or 'connection_factory', not both."
            raise ImproperConfigurationError(msg)

    @property
    def resolver(self) -> MetadataResolver:
        """Metadata resolver handed to managers created from this config."""
        if not self.share_metadata_cache:
            return MetadataResolver()
        if self._resolver is None:
            self._resolver = MetadataResolver()
        return self._resolver

    def create_connection(self) -> "Optional[CallableConnectionProtocol]":
        """Return the configured connection, creating one through the factory if set."""
        if self.connection_factory is None:
            return self.connection
        with wrap_driver_exceptions("Failed to create connection."):
            connection = self.connection_factory()
        logger.debug("Created connection %r", connection)
        return connection

    def create_manager(self) -> ProcedureManager:
        """Create a manager bound to a connection from this config."""
        return ProcedureManager(self.create_connection(), resolver=self.resolver)

    @contextmanager
    def provide_manager(self) -> Generator[ProcedureManager, None, None]:
        """Provide a manager, closing factory-made connections afterwards.

        A connection given directly in the config is left open for its owner.

        Raises:
            NoConnectionError: If the config yields no connection.
        """
        manager = self.create_manager()
        if manager.connection is None:
            raise NoConnectionError
        if self.connection_factory is None:
            yield manager
            return
        try:
            yield manager
        except BaseException as exc:
            run_cleanup(manager.close, exc, "Closing the connection")
            raise
        manager.close()
