"""Interfaces the fixture relies on for its browser session and job host."""

from typing import Protocol


class DashboardSession(Protocol):
    """Protocol for a browser session pointed at the dashboard."""

    @property
    def is_disposed(self) -> bool:
        """Whether the session has been torn down."""
        ...

    def dispose(self) -> None:
        """Tear down the session."""
        ...


class JobHost(Protocol):
    """Protocol for a host that runs the jobs under test."""

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def close(self) -> None:
        ...
