"""
Defines the pieces standing on the board.

Every occupant carries a stable identity: its name. The name encodes color, kind and an instance number,
ex. "WhiteRook1" (the queenside rook), "WhiteRook2" (the kingside rook), "BlackQueen2" (a promoted queen).
Castling rights are tracked per identity, so two rooks of the same color are never interchangeable.
"""

import re
from dataclasses import dataclass
from typing import Self

from src.core.exceptions import UnknownPieceError
from src.core.shared_types import Color, PieceType

FEN_TO_PIECE: dict[str, PieceType] = {
    "p": PieceType.PAWN,
    "n": PieceType.KNIGHT,
    "b": PieceType.BISHOP,
    "r": PieceType.ROOK,
    "q": PieceType.QUEEN,
    "k": PieceType.KING,
}

PIECE_TO_FEN: dict[PieceType, str] = {value: key for key, value in FEN_TO_PIECE.items()}

PIECE_POINTS: dict[PieceType, int] = {
    PieceType.PAWN: 1,
    PieceType.KNIGHT: 3,
    PieceType.BISHOP: 3,
    PieceType.ROOK: 5,
    PieceType.QUEEN: 9,
}

PROMOTION_OPTIONS: tuple[PieceType, ...] = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
)

_NAME_PATTERN = re.compile(
    r"^(?P<color>White|Black)(?P<kind>Pawn|Knight|Bishop|Rook|Queen|King)(?P<index>\d*)$"
)


@dataclass(frozen=True)
class Occupant:
    name: str
    color: Color
    kind: PieceType

    @classmethod
    def from_name(cls, name: str) -> Self:
        """Parse the identity back from its name. Anything else is not a piece we know about."""
        match = _NAME_PATTERN.match(name)
        if match is None:
            raise UnknownPieceError(f"Cannot interpret {name!r} as a piece identity")
        return cls(name, Color(match["color"]), PieceType(match["kind"]))

    @classmethod
    def create(cls, color: Color, kind: PieceType, index: int | None = None) -> Self:
        suffix = "" if index is None else str(index)
        return cls(f"{color}{kind}{suffix}", color, kind)

    @property
    def index(self) -> int | None:
        """Instance number of the identity, ex. 2 for "WhiteQueen2". None for "WhiteKing"."""
        match = _NAME_PATTERN.match(self.name)
        if match is None or not match["index"]:
            return None
        return int(match["index"])

    @property
    def points(self) -> int:
        # NOTE: The King's worth is undefined (does not count towards total points)
        return PIECE_POINTS.get(self.kind, 0)

    def to_fen(self) -> str:
        # upper case: White pieces, lower case: Black pieces
        character = PIECE_TO_FEN[self.kind]
        return character.upper() if self.color == Color.WHITE else character
