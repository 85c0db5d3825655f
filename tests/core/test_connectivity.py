"""Unit tests for src/core/connectivity.py"""

from unittest.mock import Mock

import pytest

from src.core.connectivity import ConnectivityStatus, poll_connectivity
from src.core.shared_types import Color, RobotState


def endpoint(ping: bool = True, reconnect: bool = False) -> Mock:
    robot = Mock()
    robot.name = "robot"
    robot.ping.return_value = ping
    robot.ensure_connected.return_value = reconnect
    return robot


@pytest.mark.parametrize(
    "white_state, black_state, ready",
    [
        (RobotState.READY, RobotState.READY, True),
        (RobotState.RUNNING, RobotState.READY, True),
        (RobotState.READY, RobotState.ERROR, False),
        (RobotState.BOOT, RobotState.READY, False),
    ],
)
def test_ready(white_state: RobotState, black_state: RobotState, ready: bool) -> None:
    status = ConnectivityStatus(True, True, white_state, black_state)
    assert status.ready == ready


def test_disconnected_is_never_ready() -> None:
    assert not ConnectivityStatus().ready
    status = ConnectivityStatus(True, False, RobotState.READY, RobotState.READY)
    assert not status.ready
    assert status.is_connected(Color.WHITE)
    assert not status.is_connected(Color.BLACK)


def test_poll_both_reachable() -> None:
    status = poll_connectivity(endpoint(), endpoint())
    assert status.ready


def test_poll_reconnects_once() -> None:
    black = endpoint(ping=False, reconnect=True)
    status = poll_connectivity(endpoint(), black)
    black.ensure_connected.assert_called_once()
    assert status.ready


def test_poll_unreachable() -> None:
    white = endpoint(ping=False)
    black = endpoint()
    black.ping.side_effect = TimeoutError()
    status = poll_connectivity(white, black)
    assert status == ConnectivityStatus()
