"""Unit tests for src/db/recovery.py"""

import json
from pathlib import Path

import pytest

from src.chess.board import Board
from src.chess.square import Square
from src.core.shared_types import Color
from src.db.recovery import (
    ClearOutcome,
    PieceRecord,
    RecoveryStore,
    board_from_snapshot,
    build_snapshot,
    enabled_color,
)


def test_nothing_to_recover(recovery_store: RecoveryStore) -> None:
    assert not recovery_store.recovery_needed
    assert recovery_store.recovery_pieces is None
    assert recovery_store.load_recovery() == (False, None)
    assert recovery_store.recovered_board() is None


def test_build_snapshot(starting_board: Board) -> None:
    pieces = build_snapshot(starting_board, Color.BLACK)
    assert len(pieces) == 32
    assert pieces["WhiteKing"] == PieceRecord(
        name="WhiteKing", row=7, col=4, z=1, enabled=False, tag="WhitePiece"
    )
    assert pieces["BlackRook2"].enabled
    assert pieces["BlackRook2"].tag == "BlackPiece"
    assert enabled_color(pieces) == Color.BLACK


def test_enabled_color_of_nothing() -> None:
    assert enabled_color({}) is None


def test_snapshot_back_to_board(starting_board: Board) -> None:
    assert board_from_snapshot(build_snapshot(starting_board, Color.WHITE)) == starting_board


def test_save_and_reload(recovery_store: RecoveryStore, starting_board: Board) -> None:
    starting_board.move_piece(Square.from_algebraic("e2"), Square.from_algebraic("e4"))
    recovery_store.save_board(starting_board, Color.BLACK, needed=True)

    reloaded = RecoveryStore(recovery_store.path.parent)
    assert reloaded.recovery_needed
    assert reloaded.recovery_pieces == build_snapshot(starting_board, Color.BLACK)
    assert reloaded.recovered_board() == starting_board


def test_file_format(recovery_store: RecoveryStore) -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/8/4K3")
    recovery_store.save_board(board, Color.WHITE, needed=True)

    content = json.loads(recovery_store.path.read_text(encoding="utf-8"))
    assert content == {
        "RecoveryNeeded": True,
        "Pieces": {
            "BlackKing": {
                "Name": "BlackKing",
                "Row": 0,
                "Col": 4,
                "Z": 1,
                "Enabled": False,
                "Tag": "BlackPiece",
            },
            "WhiteKing": {
                "Name": "WhiteKing",
                "Row": 7,
                "Col": 4,
                "Z": 1,
                "Enabled": True,
                "Tag": "WhitePiece",
            },
        },
    }
    assert not recovery_store.path.with_name(recovery_store.path.name + ".tmp").exists()


def test_not_needed_means_no_board(recovery_store: RecoveryStore, starting_board: Board) -> None:
    recovery_store.save_board(starting_board, Color.WHITE, needed=False)
    reloaded = RecoveryStore(recovery_store.path.parent)
    assert not reloaded.recovery_needed
    assert reloaded.recovery_pieces is not None
    assert reloaded.recovered_board() is None


def test_clear(recovery_store: RecoveryStore, starting_board: Board) -> None:
    recovery_store.save_board(starting_board, Color.WHITE, needed=True)

    assert recovery_store.clear_recovery() == ClearOutcome.REMOVED
    assert not recovery_store.path.exists()
    assert recovery_store.load_recovery() == (False, None)
    assert recovery_store.clear_recovery() == ClearOutcome.ABSENT


def test_clear_denied(recovery_store: RecoveryStore, monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(self: Path, missing_ok: bool = False) -> None:
        raise PermissionError("read-only")

    recovery_store.path.write_text("{}", encoding="utf-8")
    monkeypatch.setattr(Path, "unlink", refuse)
    assert recovery_store.clear_recovery() == ClearOutcome.DENIED


@pytest.mark.parametrize(
    "content",
    [
        "not json at all",
        '{"RecoveryNeeded": "maybe"}',
        '{"RecoveryNeeded": true, "Pieces": {"WhiteKing": {"Name": "WhiteKing", "Row": 9, "Col": 4}}}',
    ],
)
def test_broken_file_is_ignored(tmp_path: Path, content: str) -> None:
    (tmp_path / "recovery.json").write_text(content, encoding="utf-8")
    store = RecoveryStore(tmp_path)
    assert not store.recovery_needed
    assert store.recovery_pieces is None


def test_file_with_unknown_piece(tmp_path: Path) -> None:
    """Parses fine, but cannot be turned into a board"""
    (tmp_path / "recovery.json").write_text(
        '{"RecoveryNeeded": true, "Pieces": {"Dragon": {"Name": "Dragon", "Row": 1, "Col": 1}}}',
        encoding="utf-8",
    )
    store = RecoveryStore(tmp_path)
    assert store.recovery_needed
    assert store.recovered_board() is None


def test_custom_filename(tmp_path: Path, starting_board: Board) -> None:
    store = RecoveryStore(tmp_path / "state", filename="board.json")
    store.save_board(starting_board, Color.WHITE, needed=True)
    assert (tmp_path / "state" / "board.json").exists()
