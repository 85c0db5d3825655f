"""
Full legality on top of the movement rules: a move may not leave your own king in check.

The movement rules in moves.py / rules.py only look at geometry (and castling safety).
This module plays the move on a copy of the board and asks the check-safety oracle about the king.
"""

from src.chess.board import Board
from src.chess.check import is_in_check
from src.chess.moves import MoveContext
from src.chess.rules import validate_move
from src.chess.square import Square, all_squares
from src.core.shared_types import PieceType


def is_en_passant_capture(start: Square, end: Square, context: MoveContext) -> bool:
    """Pawn steps diagonally onto the empty en passant target: the pawn taken stands next to it."""
    mover = context.board.occupant(start)
    return (
        mover is not None
        and mover.kind == PieceType.PAWN
        and start.col != end.col
        and end == context.en_passant_target
        and not context.board.is_occupied(end)
    )


def leaves_king_in_check(start: Square, end: Square, context: MoveContext) -> bool:
    """Play the move on a copy of the occupancy and see if the mover's king is attacked afterwards."""
    hypothetical = Board(dict(context.board.position))
    if is_en_passant_capture(start, end, context):
        hypothetical.remove_piece(Square(start.row, end.col))
    hypothetical.move_piece(start, end)
    return is_in_check(context.color, hypothetical)


def is_legal_move(start: Square, end: Square, context: MoveContext) -> bool:
    """
    Movement rule of the piece + you cannot land on your own piece + you cannot leave your king in check.
    Same contract as validate_move(): off-board squares and an empty start square raise.
    """
    if not validate_move(start, end, context):
        return False

    mover = context.board.occupant(start)
    target = context.board.occupant(end)
    if mover is not None and target is not None and target.color == mover.color:
        return False
    return not leaves_king_in_check(start, end, context)


def has_legal_move(context: MoveContext) -> bool:
    """Can the side in context.color make any move at all? No: checkmate or stalemate."""
    board = context.board
    for start, occupant in list(board.position.items()):
        if occupant.color != context.color:
            continue
        for end in all_squares():
            if end != start and is_legal_move(start, end, context):
                return True
    return False
