"""
Move validation entrypoint: pick the rule for the piece on the start square and ask it.

The king is the one piece whose rule needs more than geometry: castling consults the check-safety oracle.
"""

from dataclasses import replace

from src.chess.board import Board
from src.chess.castling import CASTLING_RULES, CastlingDirection, castling_direction
from src.chess.check import is_square_safe_for
from src.chess.moves import (
    MoveContext,
    ValidateMoveFn,
    displacement,
    is_king_step,
    validate_bishop_move,
    validate_knight_move,
    validate_pawn_move,
    validate_queen_move,
    validate_rook_move,
)
from src.chess.square import Square
from src.core.exceptions import InvalidSquareError, UnknownPieceError
from src.core.shared_types import PieceType


def castling_attempt(start: Square, end: Square, context: MoveContext) -> CastlingDirection | None:
    """A king move along its rank by more than one column, landing on column 2 or 6. None if it is not one."""
    d_row, d_col = displacement(start, end)
    if d_row != 0 or abs(d_col) <= 1:
        return None
    return castling_direction(context.color, end.col)


def validate_castling(start: Square, end: Square, context: MoveContext) -> bool:
    """
    You are allowed to castle if
    ---

    * the king stands on its home square and has never moved
    * the rook of that side (by identity, ex. WhiteRook2 for White king-side) stands on its home corner and never moved
    * none of the squares the king passes (its origin, the square it crosses and the square it lands on) is attacked
    * every square between king and rook is empty (so queen-side that includes the b-file square only the rook crosses)
    """
    direction = castling_attempt(start, end, context)
    if direction is None:
        return False

    rule = CASTLING_RULES[direction]
    if start != rule.king_from or end != rule.king_to:
        return False

    rights = context.castling_rights
    if rights.king_moved(context.color) or rights.rook_moved(direction):
        return False

    board = context.board
    rook = board.occupant(rule.rook_from)
    if rook is None or rook.name != rule.rook_name:
        return False

    # Cannot castle out of, through or into check.
    king = board.occupant(start)
    for transit_square in [start, *board.squares_between(start, end), end]:
        hypothetical = Board(dict(board.position))
        if king is not None and transit_square != start:
            hypothetical.move_piece(start, transit_square)
        if not is_square_safe_for(context.color, transit_square, hypothetical):
            return False

    return not board.is_any_occupied(board.squares_between(rule.king_from, rule.rook_from))


def validate_king_move(start: Square, end: Square, context: MoveContext) -> bool:
    """
    The king can move by a single square at the time.

    Castling is modelled as a special king move of two columns.
    """
    if is_king_step(start, end):
        return True
    return validate_castling(start, end, context)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
VALIDATORS: dict[PieceType, ValidateMoveFn] = {
    PieceType.PAWN: validate_pawn_move,
    PieceType.KNIGHT: validate_knight_move,
    PieceType.BISHOP: validate_bishop_move,
    PieceType.ROOK: validate_rook_move,
    PieceType.QUEEN: validate_queen_move,
    PieceType.KING: validate_king_move,
}


def validate_move(start: Square, end: Square, context: MoveContext) -> bool:
    """
    Is moving the piece on `start` to `end` legal?
    ----

    An illegal move is a plain False. Squares off the board or an empty start square are a mistake of the caller and raise.
    """
    for square in (start, end):
        if not square.is_within_bounds():
            raise InvalidSquareError(f"Square out of range: {square}")

    occupant = context.board.occupant(start)
    if occupant is None:
        raise UnknownPieceError(f"No piece on {start.to_algebraic()}")

    # the rules read direction (pawns) and rights (king) from the mover's color
    if occupant.color != context.color:
        context = replace(context, color=occupant.color)

    movement_rule = VALIDATORS[occupant.kind]
    return movement_rule(start, end, context)
