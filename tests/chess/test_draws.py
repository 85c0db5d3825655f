"""Unit tests for src/chess/draws.py"""

import pytest

from src.chess.board import Board
from src.chess.draws import (
    is_fifty_move_draw,
    is_insufficient_material,
    is_threefold_repetition,
)


def test_counters() -> None:
    assert not is_fifty_move_draw(99)
    assert is_fifty_move_draw(100)
    assert not is_threefold_repetition(2)
    assert is_threefold_repetition(3)


@pytest.mark.parametrize(
    "placement, insufficient",
    [
        ("4k3/8/8/8/8/8/8/4K3", True),
        ("4k3/8/8/8/8/8/8/4KN2", True),
        ("4k3/8/8/8/8/8/8/4KB2", True),
        ("4kb2/8/8/8/8/8/8/4KN2", True),
        # both bishops on dark squares (f8, c1)
        ("4kb2/8/8/8/8/8/8/2B1K3", True),
        # f8 is dark, d1 is light
        ("4kb2/8/8/8/8/8/8/3BK3", False),
        ("4kn2/8/8/8/8/8/8/4KN2", False),
        ("4k3/8/8/8/8/8/8/3NKN2", False),
        # c1 is dark, f1 is light
        ("4k3/8/8/8/8/8/8/2B1KB2", False),
        # bishop and knight mate
        ("4k3/8/8/8/8/8/8/2B1KN2", False),
        # two bishops, both on dark squares (e3, c1)
        ("4k3/8/8/8/8/4B3/8/2B1K3", True),
        ("4k3/8/8/8/8/8/4P3/4K3", False),
        ("4k3/8/8/8/8/8/8/4K2R", False),
        ("3qk3/8/8/8/8/8/8/4K3", False),
    ],
)
def test_insufficient_material(placement: str, insufficient: bool) -> None:
    assert is_insufficient_material(Board.from_fen(placement)) == insufficient


def test_starting_position_is_sufficient(starting_board: Board) -> None:
    assert not is_insufficient_material(starting_board)
