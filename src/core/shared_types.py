"""
Type definitions used across layers
"""

from enum import Enum, StrEnum, auto


class Color(StrEnum):
    WHITE = "White"
    BLACK = "Black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class PieceType(StrEnum):
    PAWN = "Pawn"
    KNIGHT = "Knight"
    BISHOP = "Bishop"
    ROOK = "Rook"
    QUEEN = "Queen"
    KING = "King"


class GameOutcome(Enum):
    """Only one terminal state can be asserted at a time, so it is a single value instead of a set of flags."""

    NONE = auto()
    # named after the winner
    CHECKMATE_WHITE = auto()
    CHECKMATE_BLACK = auto()
    STALEMATE = auto()
    FIFTY_MOVE_DRAW = auto()
    THREEFOLD_DRAW = auto()
    INSUFFICIENT_MATERIAL_DRAW = auto()


class TurnPhase(Enum):
    """Idle -> Validating -> Committing -> Idle"""

    IDLE = auto()
    VALIDATING = auto()
    COMMITTING = auto()


class RobotState(Enum):
    BOOT = auto()
    READY = auto()
    RUNNING = auto()
    ERROR = auto()
    DISCONNECTED = auto()
