"""Unit tests for src/chess/san.py"""

from datetime import date
from unittest.mock import Mock

import chess
import pytest

from src.chess.board import Board
from src.chess.fen import FENState
from src.chess.game import Match
from src.chess.moves import MoveContext
from src.chess.san import pgn_game, pgn_movetext, to_san
from src.chess.square import Square
from src.core.config import AppConfig
from src.core.exceptions import UnknownPieceError
from src.core.shared_types import GameOutcome, PieceType

OPERA_GAME = (
    "e4 e5 Nf3 d6 d4 Bg4 dxe5 Bxf3 Qxf3 dxe5 Bc4 Nf6 Qb3 Qe7 Nc3 c6 Bg5 b5 Nxb5 cxb5 "
    "Bxb5+ Nbd7 O-O-O Rd8 Rxd7 Rxd7 Rd1 Qe6 Bxd7+ Nxd7 Qb8+ Nxb8 Rd8#"
).split()


def sq(algebraic: str) -> Square:
    return Square.from_algebraic(algebraic)


def context_from(fen: str) -> MoveContext:
    state = FENState.from_fen(fen)
    return MoveContext(
        board=Board.from_fen(state.position),
        color=state.color_to_move,
        castling_rights=state.castling_rights,
        en_passant_target=state.en_passant_square,
    )


@pytest.mark.parametrize(
    "fen, start, end, expected",
    [
        ("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", "e2", "e4", "e4"),
        ("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", "g1", "f3", "Nf3"),
        ("rnbqkbnr/ppp1pppp/8/3p4/4P3/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 2", "e4", "d5", "exd5"),
        # en passant: the target square is empty, it is still a capture
        ("4k3/8/8/3pP3/8/8/8/4K3 w - d6 0 2", "e5", "d6", "exd6"),
        ("4k3/8/8/8/8/8/3p4/4K3 w - - 0 1", "e1", "d2", "Kxd2"),
        # both knights reach d2: the file tells them apart
        ("4k3/8/8/8/8/8/8/1N2KN2 w - - 0 1", "b1", "d2", "Nbd2"),
        ("4k3/8/8/8/8/8/8/1N2KN2 w - - 0 1", "f1", "d2", "Nfd2"),
        # same file: the rank tells them apart
        ("4k3/8/8/R7/8/8/8/R3K3 w - - 0 1", "a1", "a3", "R1a3"),
        ("4k3/8/8/R7/8/8/8/R3K3 w - - 0 1", "a5", "a3", "R5a3"),
        # one rival on the same file, another on the same rank: full square
        ("k7/8/8/8/4Q2Q/8/K7/7Q w - - 0 1", "h4", "e1", "Qh4e1"),
        # the other knight is pinned, so there is nothing to tell apart
        ("4k3/8/8/8/1b6/8/3N4/4K1N1 w - - 0 1", "g1", "f3", "Nf3"),
        ("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1", "e1", "g1", "O-O"),
        ("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1", "e8", "c8", "O-O-O"),
    ],
)
def test_to_san(fen: str, start: str, end: str, expected: str) -> None:
    assert to_san(sq(start), sq(end), context_from(fen)) == expected


def test_promotion() -> None:
    context = context_from("1r2k3/P7/8/8/8/8/8/4K3 w - - 0 1")
    assert to_san(sq("a7"), sq("a8"), context, promoted_to=PieceType.QUEEN, check=True) == "a8=Q+"
    assert to_san(sq("a7"), sq("b8"), context, promoted_to=PieceType.KNIGHT) == "axb8=N"


def test_check_and_mate_suffix() -> None:
    context = context_from("5k2/8/8/8/8/8/8/4K2R w K - 0 1")
    assert to_san(sq("e1"), sq("g1"), context, check=True) == "O-O+"
    assert to_san(sq("h1"), sq("h8"), context, check=True, mate=True) == "Rh8#"


def test_empty_start_square() -> None:
    with pytest.raises(UnknownPieceError):
        to_san(sq("e4"), sq("e5"), context_from("4k3/8/8/8/8/8/8/4K3 w - - 0 1"))


def test_match_notation_agrees_with_python_chess() -> None:
    """Replay a full game through the Match and compare every move with python-chess."""
    reference = chess.Board()
    move_log = Mock()
    match = Match.new(Mock(), config=AppConfig(confirm_move=False), move_log=move_log)

    for san in OPERA_GAME:
        move = reference.parse_san(san)
        accepted = match.propose_move(
            Square.from_algebraic(chess.square_name(move.from_square)),
            Square.from_algebraic(chess.square_name(move.to_square)),
        )
        assert accepted is not None, san
        assert accepted.san == reference.san(move)
        reference.push(move)

    assert match.session.outcome == GameOutcome.CHECKMATE_WHITE
    assert [entry.args[0].san for entry in move_log.record_move.call_args_list] == OPERA_GAME


# --- PGN ---
def test_pgn_movetext() -> None:
    assert pgn_movetext([]) == ""
    assert pgn_movetext(["e4", "e5", "Nf3"]) == "1. e4 e5 2. Nf3"
    assert pgn_movetext(["e5", "Nf3", "Nc6"], first_fullmove=3, black_first=True) == "3... e5 4. Nf3 Nc6"


def test_pgn_game() -> None:
    pgn = pgn_game(
        ["f3", "e5", "g4", "Qh4#"],
        outcome=GameOutcome.CHECKMATE_BLACK,
        white="User",
        black="Bot",
        played_on=date(2025, 7, 18),
    )
    assert pgn == (
        '[Event "Chess Match"]\n'
        '[Site "Robotic Chess Board"]\n'
        '[Date "2025.07.18"]\n'
        '[Round "1"]\n'
        '[White "User"]\n'
        '[Black "Bot"]\n'
        '[Result "0-1"]\n'
        "\n"
        "1. f3 e5 2. g4 Qh4# 0-1\n"
    )


def test_pgn_game_in_progress() -> None:
    pgn = pgn_game([], played_on=date(2025, 7, 18))
    assert '[Result "*"]' in pgn
    assert pgn.endswith("\n\n*\n")


def test_pgn_game_escapes_names() -> None:
    pgn = pgn_game([], white='Bot "Stockfish"', played_on=date(2025, 7, 18))
    assert '[White "Bot \\"Stockfish\\""]' in pgn
