"""
Geometry of piece movement and attacks.

Key idea: Use strategy pattern to define the movement rule of each piece type.
Every rule is a pure predicate:  (start square, end square, context) -> legal or not.

NOTE: None of these rules check whether the destination holds a piece of the mover's own color.
The board interface only lets the player select squares not occupied by their own pieces.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Protocol

from src.chess.castling import CastlingRights
from src.chess.pieces import Occupant
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.shared_types import Color, PieceType


class Board(Protocol):
    """Just the parts the movement rules need"""

    position: dict[Square, Occupant]

    def occupant(self, square: Square) -> Optional[Occupant]: ...
    def is_occupied(self, square: Square) -> bool: ...
    def is_any_occupied(self, squares: Iterable[Square]) -> bool: ...
    def squares_between(self, start: Square, end: Square) -> list[Square]: ...


@dataclass(frozen=True)
class MoveContext:
    """Everything a rule may look at besides the two squares. Rules never mutate any of it."""

    board: Board
    color: Color
    castling_rights: CastlingRights = field(default_factory=CastlingRights)
    en_passant_target: Optional[Square] = None


Vector = tuple[int, int]
ValidateMoveFn = Callable[[Square, Square, MoveContext], bool]

# White pawns walk up the board (towards row 0), Black pawns walk down.
PAWN_DIRECTION: dict[Color, int] = {Color.WHITE: -1, Color.BLACK: 1}
PAWN_HOME_ROW: dict[Color, int] = {Color.WHITE: 6, Color.BLACK: 1}
PROMOTION_ROW: dict[Color, int] = {Color.WHITE: 0, Color.BLACK: BOARD_DIMENSIONS[0] - 1}

KNIGHT_DELTAS: frozenset[Vector] = frozenset(
    [(2, 1), (2, -1), (-2, 1), (-2, -1), (1, 2), (1, -2), (-1, 2), (-1, -2)]
)


def displacement(start: Square, end: Square) -> Vector:
    return end.row - start.row, end.col - start.col


# --- SHAPES ---
def is_diagonal(start: Square, end: Square) -> bool:
    """Bishops move diagonally: |delta_row| = |delta_col| (and actually move)"""
    d_row, d_col = displacement(start, end)
    return d_row != 0 and abs(d_row) == abs(d_col)


def is_straight(start: Square, end: Square) -> bool:
    """Rooks move either along a rank or along a file (and actually move)"""
    d_row, d_col = displacement(start, end)
    return (d_row == 0) != (d_col == 0)


def is_king_step(start: Square, end: Square) -> bool:
    """Chebyshev distance of exactly one"""
    d_row, d_col = displacement(start, end)
    return max(abs(d_row), abs(d_col)) == 1


# --- MOVEMENT RULES ---
def is_path_clear(start: Square, end: Square, board: Board) -> bool:
    """
    Sliding pieces cannot jump: walk the open interval between start and end.
    Any occupant (of either color) blocks. The destination itself is not inspected.
    """
    return not board.is_any_occupied(board.squares_between(start, end))


def validate_bishop_move(start: Square, end: Square, context: MoveContext) -> bool:
    return is_diagonal(start, end) and is_path_clear(start, end, context.board)


def validate_rook_move(start: Square, end: Square, context: MoveContext) -> bool:
    return is_straight(start, end) and is_path_clear(start, end, context.board)


def validate_queen_move(start: Square, end: Square, context: MoveContext) -> bool:
    """
    The Queen combines the rook moves (rank + file movements) and bishop moves (diagonal movement)
    """
    return validate_rook_move(start, end, context) or validate_bishop_move(
        start, end, context
    )


def validate_knight_move(start: Square, end: Square, context: MoveContext) -> bool:
    """Knights jump, so nothing can block them"""
    return displacement(start, end) in KNIGHT_DELTAS


def validate_king_step(start: Square, end: Square, context: MoveContext) -> bool:
    """The ordinary king move. Castling is handled on top of this (see src/chess/rules.py)"""
    return is_king_step(start, end)


def validate_pawn_move(start: Square, end: Square, context: MoveContext) -> bool:
    """
    A pawn:
    - moves a single square forward onto an empty square
    - can move by two from its home row, if both squares are empty
    - takes diagonally forward: needs an opponent's piece there, or the square must be the en passant target
    """
    board = context.board
    forward = PAWN_DIRECTION[context.color]
    d_row, d_col = displacement(start, end)

    # single push
    if d_row == forward and d_col == 0:
        return not board.is_occupied(end)

    # double push
    if d_row == 2 * forward and d_col == 0:
        if start.row != PAWN_HOME_ROW[context.color]:
            return False
        return not board.is_any_occupied([start.offset(forward, 0), end])

    # capture
    if d_row == forward and abs(d_col) == 1:
        target = board.occupant(end)
        if target is not None:
            return target.color != context.color
        return end == context.en_passant_target

    return False


def is_promotion_move(end: Square, color: Color) -> bool:
    """Pawn reaching the last rank (seen from its own side)"""
    return end.row == PROMOTION_ROW[color]


def is_double_push(start: Square, end: Square) -> bool:
    d_row, d_col = displacement(start, end)
    return d_col == 0 and abs(d_row) == 2


# --- CAPTURING RULES / ATTACKING RULES ---
def pawn_attacks(start: Square, target: Square, context: MoveContext) -> bool:
    """
    Pawns only attack diagonally forward. A pawn push never captures, so it does not count as an attack.
    Whether a piece stands on the target is irrelevant: we ask "could it take there?"
    """
    d_row, d_col = displacement(start, target)
    return d_row == PAWN_DIRECTION[context.color] and abs(d_col) == 1


# --- STRATEGY PATTERN: ATTACKING RULES ---
# NOTE: the king attacks with its plain step only. Castling never captures,
# which is what keeps the castling check from asking itself the same question again.
ATTACK_RULES: dict[PieceType, ValidateMoveFn] = {
    PieceType.PAWN: pawn_attacks,
    PieceType.KNIGHT: validate_knight_move,
    PieceType.BISHOP: validate_bishop_move,
    PieceType.ROOK: validate_rook_move,
    PieceType.QUEEN: validate_queen_move,
    PieceType.KING: validate_king_step,
}
