from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

here = Path(__file__).parent
root_path = here.parent


class RecordingPreparedCall:
    """In-memory prepared call recording every driver interaction."""

    def __init__(self, sql: str, events: list[tuple[Any, ...]], outputs: dict[int, Any]) -> None:
        self.sql = sql
        self.events = events
        self.outputs = outputs
        self.execute_result = False
        self.execute_error: Exception | None = None
        self.close_error: Exception | None = None
        self.close_count = 0

    def set_parameter(self, position: int, value: Any) -> None:
        self.events.append(("set", position, value))

    def register_out_parameter(self, position: int, sql_type: Any) -> None:
        self.events.append(("register", position, sql_type))

    def execute(self) -> bool:
        self.events.append(("execute",))
        if self.execute_error is not None:
            raise self.execute_error
        return self.execute_result

    def get_parameter(self, position: int) -> Any:
        self.events.append(("get", position))
        return self.outputs[position]

    def close(self) -> None:
        self.close_count += 1
        self.events.append(("close",))
        if self.close_error is not None:
            raise self.close_error


class RecordingConnection:
    """In-memory callable-statement connection."""

    def __init__(self) -> None:
        self.events: list[tuple[Any, ...]] = []
        self.outputs: dict[int, Any] = {}
        self.prepared: list[RecordingPreparedCall] = []
        self.autocommit = True
        self.closed = False
        self.execute_result = False
        self.execute_error: Exception | None = None
        self.close_error: Exception | None = None
        self.autocommit_error: Exception | None = None
        self.commit_error: Exception | None = None
        self.rollback_error: Exception | None = None
        self.close_connection_error: Exception | None = None

    def prepare_call(self, sql: str) -> RecordingPreparedCall:
        self.events.append(("prepare", sql))
        statement = RecordingPreparedCall(sql, self.events, self.outputs)
        statement.execute_result = self.execute_result
        statement.execute_error = self.execute_error
        statement.close_error = self.close_error
        self.prepared.append(statement)
        return statement

    def set_autocommit(self, autocommit: bool) -> None:
        self.events.append(("autocommit", autocommit))
        if self.autocommit_error is not None:
            raise self.autocommit_error
        self.autocommit = autocommit

    def commit(self) -> None:
        self.events.append(("commit",))
        if self.commit_error is not None:
            raise self.commit_error

    def rollback(self) -> None:
        self.events.append(("rollback",))
        if self.rollback_error is not None:
            raise self.rollback_error

    def close(self) -> None:
        self.events.append(("close_connection",))
        if self.close_connection_error is not None:
            raise self.close_connection_error
        self.closed = True


@pytest.fixture
def connection() -> RecordingConnection:
    return RecordingConnection()
