"""Local web server hosting the dashboard site extension."""

import logging
import os
import shlex
import socket
import subprocess
import sys
import time
from pathlib import Path
from typing import List, Optional, Union

import httpx

from dashboard_e2e.core.exceptions import DashboardServerError

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "{python} -m http.server {port} --bind 127.0.0.1 --directory {site}"

# Environment variables the dashboard reads its storage connection from
CONNECTION_STRING_VARIABLES = ("AzureWebJobsDashboard", "AzureWebJobsStorage")


def find_free_port() -> int:
    """Ask the OS for a free local TCP port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class DashboardServer:
    """Runs the dashboard site as a local server process."""

    def __init__(
        self,
        site_path: Union[str, Path],
        connection_string: str,
        port: Optional[int] = None,
        command: Optional[str] = None,
        start_timeout: float = 30.0
    ):
        """Initialize the dashboard server.

        Args:
            site_path: Directory of the dashboard site to host
            connection_string: Storage connection string handed to the dashboard
            port: Port to listen on. A free port is picked if None.
            command: Command template with {port}, {site} and {python} placeholders
            start_timeout: Seconds to wait for the server to answer HTTP requests
        """
        self.site_path = Path(site_path)
        self.connection_string = connection_string
        self.port = port or find_free_port()
        self.command = command or DEFAULT_COMMAND
        self.start_timeout = start_timeout

        self.process: Optional[subprocess.Popen] = None
        self._disposed = False

    @property
    def virtual_path(self) -> str:
        return f"http://127.0.0.1:{self.port}/"

    @property
    def is_running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def build_command(self) -> List[str]:
        """Expand the command template into an argument list."""
        args = shlex.split(self.command)
        return [
            arg.format(python=sys.executable, port=self.port, site=str(self.site_path))
            for arg in args
        ]

    def build_env(self) -> dict:
        env = os.environ.copy()
        for name in CONNECTION_STRING_VARIABLES:
            env[name] = self.connection_string
        return env

    def start(self) -> None:
        """Start the server process and wait until it answers.

        Raises:
            DashboardServerError: If already started, disposed, or the server
                doesn't come up within start_timeout
        """
        if self._disposed:
            raise DashboardServerError("Cannot start a disposed dashboard server")
        if self.process is not None:
            raise DashboardServerError("Dashboard server has already been started")

        args = self.build_command()
        logger.info(f"Starting dashboard server on port {self.port}: {' '.join(args)}")

        self.process = subprocess.Popen(
            args,
            cwd=str(self.site_path),
            env=self.build_env(),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

        try:
            self._wait_until_ready()
        except DashboardServerError:
            self._stop_process()
            raise

        logger.info(f"Dashboard server is listening at {self.virtual_path}")

    def _wait_until_ready(self) -> None:
        deadline = time.time() + self.start_timeout

        with httpx.Client(timeout=2.0, trust_env=False) as client:
            while time.time() < deadline:
                if self.process.poll() is not None:
                    raise DashboardServerError(
                        f"Dashboard server exited with code {self.process.returncode} during startup"
                    )
                try:
                    response = client.get(self.virtual_path)
                    logger.debug(f"Dashboard server answered with status {response.status_code}")
                    return
                except httpx.TransportError as e:
                    logger.debug(f"Dashboard server not ready yet: {e}")
                time.sleep(0.25)

        raise DashboardServerError(
            f"Dashboard server did not respond at {self.virtual_path} within {self.start_timeout}s"
        )

    def _stop_process(self) -> None:
        if self.process is None or self.process.poll() is not None:
            return

        self.process.terminate()
        try:
            self.process.wait(timeout=10)
        except subprocess.TimeoutExpired:
            logger.warning("Dashboard server did not exit after terminate; killing it")
            self.process.kill()
            self.process.wait()

    def dispose(self) -> None:
        """Stop the server process. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True

        self._stop_process()
        logger.info("Dashboard server stopped")
