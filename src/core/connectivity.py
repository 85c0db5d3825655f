"""
Connectivity of the robots on both sides of the board.

The watchdog that polls the endpoints lives outside of this package. The rules only ever look at
a ConnectivityStatus snapshot that gets handed to them, never at the endpoints themselves.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from src.core.shared_types import Color, RobotState

logger = logging.getLogger(__name__)


class RobotEndpoint(Protocol):
    """Just the parts of a robot controller the connectivity poll needs"""

    name: str

    def ping(self) -> bool: ...
    def ensure_connected(self) -> bool: ...


@dataclass(frozen=True)
class ConnectivityStatus:
    white_connected: bool = False
    black_connected: bool = False
    white_state: RobotState = RobotState.DISCONNECTED
    black_state: RobotState = RobotState.DISCONNECTED

    @property
    def ready(self) -> bool:
        """Both robots are reachable and not in an error state."""
        usable = {RobotState.READY, RobotState.RUNNING}
        return (
            self.white_connected
            and self.black_connected
            and self.white_state in usable
            and self.black_state in usable
        )

    def is_connected(self, color: Color) -> bool:
        return self.white_connected if color == Color.WHITE else self.black_connected


def _reach(endpoint: RobotEndpoint) -> bool:
    """Ping, and if that fails, try to (re)connect once. An endpoint that raises counts as disconnected."""
    try:
        return endpoint.ping() or endpoint.ensure_connected()
    except (OSError, TimeoutError):
        logger.exception("Endpoint %s could not be reached", endpoint.name)
        return False


def poll_connectivity(white: RobotEndpoint, black: RobotEndpoint) -> ConnectivityStatus:
    """Build a fresh snapshot from both endpoints."""
    white_ok = _reach(white)
    black_ok = _reach(black)
    if not (white_ok and black_ok):
        logger.warning("Robot connectivity: white=%s black=%s", white_ok, black_ok)
    return ConnectivityStatus(
        white_connected=white_ok,
        black_connected=black_ok,
        white_state=RobotState.READY if white_ok else RobotState.DISCONNECTED,
        black_state=RobotState.READY if black_ok else RobotState.DISCONNECTED,
    )
