"""
Check-safety oracle: is a square attacked under some (possibly hypothetical) occupancy?

Used by the castling rule. is_in_check() is the same question asked about the square of the king.
"""

from src.chess.board import Board
from src.chess.moves import ATTACK_RULES, MoveContext
from src.chess.square import Square
from src.core.shared_types import Color


def is_square_safe_for(color: Color, square: Square, occupancy: Board) -> bool:
    """
    True if no piece of the opponent of `color` could capture on `square` in the given occupancy.

    ---
    Every opposing piece is asked through its own attack rule (see ATTACK_RULES).
    The occupancy passed in may be a copy in which pieces were moved around: nothing here looks at the game session.
    """
    opponent = color.opponent
    for attacker_square, occupant in occupancy.position.items():
        if occupant.color != opponent:
            continue
        attack_rule = ATTACK_RULES[occupant.kind]
        context = MoveContext(board=occupancy, color=opponent)
        if attack_rule(attacker_square, square, context):
            return False
    return True


def is_in_check(color: Color, board: Board) -> bool:
    """Is the king of `color` attacked? A board without that king can't be in check."""
    king_square = board.locate_king(color)
    if king_square is None:
        return False
    return not is_square_safe_for(color, king_square, board)
