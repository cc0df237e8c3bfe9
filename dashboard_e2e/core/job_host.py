"""Runs a job host until the job under test signals completion."""

import logging
import threading
from contextlib import closing
from typing import Any, Callable

from dashboard_e2e.core.browser_interface import JobHost
from dashboard_e2e.core.exceptions import FixtureDisposedError

logger = logging.getLogger(__name__)


class DoneSignal:
    """Single-use completion signal, set once by the job and waited on once by the test."""

    def __init__(self):
        self._event = threading.Event()
        self._closed = False

    def set(self) -> None:
        """Mark the job as done. Later calls are no-ops."""
        if not self._event.is_set():
            self._event.set()
            logger.debug("Done signal set")

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self) -> None:
        """Block until the signal is set. There is no timeout."""
        if self._closed:
            raise FixtureDisposedError(type(self).__name__)
        self._event.wait()

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "DoneSignal":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def done_notification_function(done: DoneSignal) -> Callable[..., None]:
    """Build the job-side function that reports completion.

    Args:
        done: Signal to set when the returned function runs

    Returns:
        Callable accepting (and ignoring) whatever arguments the job host passes
    """
    def notify_done(*args: Any, **kwargs: Any) -> None:
        done.set()

    return notify_done


def run_test_host(host_factory: Callable[[Any], JobHost], config: Any, done: DoneSignal) -> None:
    """Run a job host until the done signal fires, then stop it.

    Errors from stopping the host are logged and swallowed. The host and the
    signal are closed however the wait ends.

    Args:
        host_factory: Builds a host from its configuration
        config: Host configuration
        done: Signal the job sets when it finishes
    """
    with done, closing(host_factory(config)) as host:
        host.start()
        logger.info("Job host started; waiting for the done signal")
        done.wait()

        try:
            host.stop()
        except Exception:
            logger.warning("Ignoring error while stopping job host", exc_info=True)
