"""Draw conditions that do not need the engine."""

from collections import Counter

from src.chess.board import Board
from src.core.shared_types import PieceType

# 50 moves by each side without a pawn move or a capture
FIFTY_MOVE_HALFMOVES = 100
REPETITION_LIMIT = 3

# with any of these left on the board, mate is still possible
MATING_KINDS = frozenset([PieceType.PAWN, PieceType.ROOK, PieceType.QUEEN])


def is_fifty_move_draw(halfmove: int) -> bool:
    return halfmove >= FIFTY_MOVE_HALFMOVES


def is_threefold_repetition(occurrences: int) -> bool:
    return occurrences >= REPETITION_LIMIT


def is_insufficient_material(board: Board) -> bool:
    """
    Neither side can force mate.
    ----

    * no pawns, rooks or queens left
    * bishops only (any number, either side): all of them on one square shade
    * otherwise at most one minor piece per side, and not a knight each
    """
    if any(occupant.kind in MATING_KINDS for occupant in board.position.values()):
        return False

    minors = [
        (square, occupant)
        for square, occupant in board.position.items()
        if occupant.kind != PieceType.KING
    ]
    if all(occupant.kind == PieceType.BISHOP for _, occupant in minors):
        # shade 0 light, 1 dark
        return len({(square.row + square.col) % 2 for square, _ in minors}) <= 1

    per_side = Counter(occupant.color for _, occupant in minors)
    if any(count >= 2 for count in per_side.values()):
        return False
    # a knight each can still mate
    knights = sum(occupant.kind == PieceType.KNIGHT for _, occupant in minors)
    return knights < 2
