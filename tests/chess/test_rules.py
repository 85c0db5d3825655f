"""Unit tests for /src/chess/rules.py (dispatch + king / castling)"""

import pytest

from src.chess.board import Board
from src.chess.castling import CastlingRights
from src.chess.moves import MoveContext
from src.chess.rules import VALIDATORS, castling_attempt, validate_move
from src.chess.square import Square
from src.core.exceptions import InvalidSquareError, UnknownPieceError
from src.core.shared_types import Color, PieceType

CASTLING_READY = "r3k2r/8/8/8/8/8/8/R3K2R"


def sq(algebraic: str) -> Square:
    return Square.from_algebraic(algebraic)


def castle(
    placement: str,
    start: str,
    end: str,
    color: Color = Color.WHITE,
    rights: CastlingRights = CastlingRights(),
) -> bool:
    context = MoveContext(board=Board.from_fen(placement), color=color, castling_rights=rights)
    return validate_move(sq(start), sq(end), context)


# --- DISPATCH ---
def test_every_kind_has_a_validator() -> None:
    assert set(VALIDATORS) == set(PieceType)


@pytest.mark.parametrize("kind", list(PieceType))
@pytest.mark.parametrize("square", [(0, 0), (4, 4), (7, 4), (6, 3)])
def test_null_move_is_never_legal(kind: PieceType, square: tuple[int, int]) -> None:
    name = f"White{kind}" if kind == PieceType.KING else f"White{kind}1"
    board = Board.from_placements([(name, Square(*square))])
    context = MoveContext(board=board, color=Color.WHITE)
    assert not validate_move(Square(*square), Square(*square), context)


@pytest.mark.parametrize("start, end", [((8, 0), (7, 0)), ((0, 0), (0, -1)), ((-1, 3), (2, 3))])
def test_off_board_squares_raise(start: tuple[int, int], end: tuple[int, int]) -> None:
    context = MoveContext(board=Board.starting_position(), color=Color.WHITE)
    with pytest.raises(InvalidSquareError):
        validate_move(Square(*start), Square(*end), context)


def test_empty_start_square_raises(starting_board: Board) -> None:
    context = MoveContext(board=starting_board, color=Color.WHITE)
    with pytest.raises(UnknownPieceError):
        validate_move(sq("e4"), sq("e5"), context)


def test_rule_follows_the_color_of_the_piece(starting_board: Board) -> None:
    """A black pawn walks down the board, even if the context was built for White"""
    context = MoveContext(board=starting_board, color=Color.WHITE)
    assert validate_move(sq("e7"), sq("e5"), context)
    assert not validate_move(sq("e7"), sq("e8"), context)


def test_bishop_through_dispatch() -> None:
    board = Board.from_placements([("WhiteBishop1", Square(0, 0))])
    context = MoveContext(board=board, color=Color.WHITE)
    assert validate_move(Square(0, 0), Square(3, 3), context)
    assert not validate_move(Square(0, 0), Square(3, 4), context)


# --- KING ---
@pytest.mark.parametrize("end", ["d4", "d5", "e5", "f5", "f4", "f3", "e3", "d3"])
def test_king_steps(end: str) -> None:
    assert castle("8/8/8/8/4K3/8/8/8", "e4", end)


@pytest.mark.parametrize("end", ["e6", "c4", "g4", "g6"])
def test_king_cannot_jump(end: str) -> None:
    assert not castle("8/8/8/8/4K3/8/8/8", "e4", end)


def test_castling_attempt_recognition() -> None:
    context = MoveContext(board=Board.from_fen(CASTLING_READY), color=Color.WHITE)
    assert castling_attempt(sq("e1"), sq("g1"), context) is not None
    assert castling_attempt(sq("e1"), sq("c1"), context) is not None
    assert castling_attempt(sq("e1"), sq("f1"), context) is None
    assert castling_attempt(sq("e1"), sq("b1"), context) is None


# --- CASTLING ---
@pytest.mark.parametrize(
    "start, end, color",
    [
        ("e1", "g1", Color.WHITE),
        ("e1", "c1", Color.WHITE),
        ("e8", "g8", Color.BLACK),
        ("e8", "c8", Color.BLACK),
    ],
)
def test_castling_when_everything_is_in_place(start: str, end: str, color: Color) -> None:
    assert castle(CASTLING_READY, start, end, color)


@pytest.mark.parametrize(
    "placement, description",
    [
        ("r3k2r/8/8/8/8/8/5r2/R3K2R", "rook on f2 attacks the square the king crosses"),
        ("r3k2r/8/8/6r1/8/8/8/R3K2R", "rook on g5 attacks the destination"),
        ("r3k2r/8/8/4r3/8/8/8/R3K2R", "rook on e5 gives check on the origin square"),
        ("r3k2r/8/8/8/8/8/6p1/R3K2R", "pawn on g2 attacks f1"),
        ("r3k2r/8/8/8/8/2b5/8/R3K2R", "bishop on c3 gives check on the origin square"),
        ("r3k2r/8/8/8/8/4n3/8/R3K2R", "knight on e3 attacks g2 and f1"),
    ],
)
def test_kingside_castling_through_attack(placement: str, description: str) -> None:
    """Attacked transit square: illegal, even though the path is empty"""
    assert not castle(placement, "e1", "g1"), description


def test_attack_on_one_side_only_blocks_that_side() -> None:
    assert not castle("r3k2r/8/8/8/8/8/5r2/R3K2R", "e1", "g1")
    assert castle("r3k2r/8/8/8/8/8/5r2/R3K2R", "e1", "c1")


def test_attacked_rook_square_does_not_matter() -> None:
    """Only the king's squares must be safe: b1 under attack does not stop queen-side castling"""
    assert castle("r3k2r/8/8/1r6/8/8/8/R3K2R", "e1", "c1")


def test_rook_flag_revokes_one_side() -> None:
    rights = CastlingRights(cwr2=True)
    assert not castle(CASTLING_READY, "e1", "g1", rights=rights)
    assert castle(CASTLING_READY, "e1", "c1", rights=rights)


def test_rook_flag_wins_over_safety() -> None:
    """Unattacked, empty path, but the rook moved before: illegal"""
    rights = CastlingRights(cbr1=True)
    assert not castle(CASTLING_READY, "e8", "c8", Color.BLACK, rights)


def test_king_flag_revokes_both_sides() -> None:
    rights = CastlingRights(cwk=True)
    assert not castle(CASTLING_READY, "e1", "g1", rights=rights)
    assert not castle(CASTLING_READY, "e1", "c1", rights=rights)


@pytest.mark.parametrize(
    "placement, end",
    [
        ("r3k2r/8/8/8/8/8/8/R3K1NR", "g1"),
        ("r3k2r/8/8/8/8/8/8/R3KB1R", "g1"),
        ("r3k2r/8/8/8/8/8/8/RN2K2R", "c1"),
        ("r3k2r/8/8/8/8/8/8/R2QK2R", "c1"),
    ],
)
def test_castling_path_must_be_empty(placement: str, end: str) -> None:
    """Queen-side that includes b1, which only the rook crosses"""
    assert not castle(placement, "e1", end)


def test_castling_needs_the_rook_identity() -> None:
    """A rook on h1 that is not WhiteRook2 (ex. a promoted rook) cannot castle"""
    board = Board.from_placements([("WhiteKing", sq("e1")), ("WhiteRook3", sq("h1"))])
    context = MoveContext(board=board, color=Color.WHITE)
    assert not validate_move(sq("e1"), sq("g1"), context)

    board = Board.from_placements([("WhiteKing", sq("e1")), ("WhiteRook2", sq("h1"))])
    context = MoveContext(board=board, color=Color.WHITE)
    assert validate_move(sq("e1"), sq("g1"), context)


def test_castling_needs_the_rook() -> None:
    assert not castle("r3k2r/8/8/8/8/8/8/R3K3", "e1", "g1")


def test_castling_from_the_wrong_square() -> None:
    assert not castle("8/8/8/8/8/8/4K3/R6R", "e2", "g2")
    assert not castle("8/8/8/8/8/8/8/R2K3R", "d1", "b1")
