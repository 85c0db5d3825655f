"""Helpers for implementing Castling rules. Need to be imported by multiple sources"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Self

from src.chess.square import Square
from src.core.shared_types import Color


class CastlingDirection(Enum):
    """The four castling directions. Values represent their encodings in FEN string."""

    WHITE_KING_SIDE = "K"
    WHITE_QUEEN_SIDE = "Q"
    BLACK_KING_SIDE = "k"
    BLACK_QUEEN_SIDE = "q"


CASTLING_ORDER: tuple[CastlingDirection, ...] = (
    CastlingDirection.WHITE_KING_SIDE,
    CastlingDirection.WHITE_QUEEN_SIDE,
    CastlingDirection.BLACK_KING_SIDE,
    CastlingDirection.BLACK_QUEEN_SIDE,
)

# Destination columns of the king that mark a castling attempt
KING_SIDE_COL = 6
QUEEN_SIDE_COL = 2


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling, plus which rook (by identity) is involved.
    NOTE: If castling rights have not been revoked, we already know the king / rook are still at their starting squares.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square
    rook_name: str

    @classmethod
    def from_algebraic(
        cls, k_from: str, k_to: str, r_from: str, r_to: str, rook_name: str
    ) -> Self:
        """Convenience method: to make mapping shown below (from CastlingDirection) more readable"""
        return cls(
            Square.from_algebraic(k_from),
            Square.from_algebraic(k_to),
            Square.from_algebraic(r_from),
            Square.from_algebraic(r_to),
            rook_name,
        )


# The moves (in classical chess) made when castling. Rook1 stands on the a-file, Rook2 on the h-file.
CASTLING_RULES: dict[CastlingDirection, CastlingSquares] = {
    CastlingDirection.WHITE_KING_SIDE: CastlingSquares.from_algebraic(
        "e1", "g1", "h1", "f1", "WhiteRook2"
    ),
    CastlingDirection.WHITE_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e1", "c1", "a1", "d1", "WhiteRook1"
    ),
    CastlingDirection.BLACK_KING_SIDE: CastlingSquares.from_algebraic(
        "e8", "g8", "h8", "f8", "BlackRook2"
    ),
    CastlingDirection.BLACK_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e8", "c8", "a8", "d8", "BlackRook1"
    ),
}

# Which session flag gets raised once the piece with this identity moves or gets captured
CASTLING_FLAG_BY_NAME: dict[str, str] = {
    "WhiteKing": "cwk",
    "WhiteRook1": "cwr1",
    "WhiteRook2": "cwr2",
    "BlackKing": "cbk",
    "BlackRook1": "cbr1",
    "BlackRook2": "cbr2",
}


# Where each castling piece stands before it ever moved
CASTLING_HOME_SQUARES: dict[str, Square] = {
    **{rule.rook_name: rule.rook_from for rule in CASTLING_RULES.values()},
    "WhiteKing": CASTLING_RULES[CastlingDirection.WHITE_KING_SIDE].king_from,
    "BlackKing": CASTLING_RULES[CastlingDirection.BLACK_KING_SIDE].king_from,
}


def castling_direction(color: Color, end_col: int) -> Optional[CastlingDirection]:
    """Map the king's destination column to a castling direction (None if that column is not a castling target)."""
    if end_col == KING_SIDE_COL:
        return (
            CastlingDirection.WHITE_KING_SIDE
            if color == Color.WHITE
            else CastlingDirection.BLACK_KING_SIDE
        )
    if end_col == QUEEN_SIDE_COL:
        return (
            CastlingDirection.WHITE_QUEEN_SIDE
            if color == Color.WHITE
            else CastlingDirection.BLACK_QUEEN_SIDE
        )
    return None


@dataclass(frozen=True)
class CastlingRights:
    """
    Read-only view on the six castling flags.
    A flag being True means: this king/rook has moved (or was captured), so it can no longer castle.
    """

    cwk: bool = False
    cwr1: bool = False
    cwr2: bool = False
    cbk: bool = False
    cbr1: bool = False
    cbr2: bool = False

    def king_moved(self, color: Color) -> bool:
        return self.cwk if color == Color.WHITE else self.cbk

    def rook_moved(self, direction: CastlingDirection) -> bool:
        flag = CASTLING_FLAG_BY_NAME[CASTLING_RULES[direction].rook_name]
        return getattr(self, flag)

    def can_castle(self, direction: CastlingDirection) -> bool:
        color = (
            Color.WHITE
            if direction
            in (CastlingDirection.WHITE_KING_SIDE, CastlingDirection.WHITE_QUEEN_SIDE)
            else Color.BLACK
        )
        return not self.king_moved(color) and not self.rook_moved(direction)

    def to_fen(self) -> str:
        """KQkq order, '-' if every right has been revoked"""
        castling_chars = "".join(
            direction.value for direction in CASTLING_ORDER if self.can_castle(direction)
        )
        return castling_chars or "-"
