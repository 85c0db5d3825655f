"""The Board holds the occupancy: which occupant stands on which square. It has no rules of its own."""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional, Self

from src.chess.pieces import FEN_TO_PIECE, Occupant
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError, UnknownPieceError
from src.core.shared_types import Color, PieceType

STARTING_PLACEMENT = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"

# Rooks standing on these squares are the ones that can castle: Rook1 on the a-file, Rook2 on the h-file.
HOME_ROOK_INDEX: dict[Square, int] = {
    Square(7, 0): 1,
    Square(7, 7): 2,
    Square(0, 0): 1,
    Square(0, 7): 2,
}


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


@dataclass
class Board:
    position: dict[Square, Occupant] = field(default_factory=dict)

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_PLACEMENT)

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the first part of a FEN string (the piece placement).

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        * the first rank group is the 8th rank, which is row 0 of the board
        * a letter is a piece (upper case White, lower case Black), a number that many empty squares

        Identities get handed out in reading order (WhitePawn1, WhitePawn2, ...).
        Exception: rooks on their home corner get the identity that carries the castling right (Rook1 / Rook2),
        other rooks are numbered from 3 onwards. A single king is just "WhiteKing"/"BlackKing".
        """
        fen_by_rows = fen_str.split("/")
        if len(fen_by_rows) != BOARD_DIMENSIONS[0]:
            raise InvalidFENError(f"Expected {BOARD_DIMENSIONS[0]} ranks in: {fen_str!r}")

        # First pass: place pieces, remember which still need an identity
        placed: list[tuple[Square, Color, PieceType]] = []
        for row, fen_one_row in enumerate(fen_by_rows):
            col = 0
            for character in fen_one_row:
                if character.isdigit():
                    col += int(character)
                    continue
                if character.lower() not in FEN_TO_PIECE:
                    raise InvalidFENError(f"Unknown piece {character!r} in: {fen_str!r}")
                color = Color.WHITE if character.isupper() else Color.BLACK
                placed.append((Square(row, col), color, FEN_TO_PIECE[character.lower()]))
                col += 1
            if col != BOARD_DIMENSIONS[1]:
                raise InvalidFENError(f"Rank {fen_one_row!r} does not cover the board")

        # Second pass: hand out identities
        counters: dict[tuple[Color, PieceType], int] = defaultdict(int)
        rook_counters: dict[Color, int] = defaultdict(lambda: 2)
        kings_seen: set[Color] = set()
        position: dict[Square, Occupant] = {}
        for square, color, kind in placed:
            if kind == PieceType.KING and color not in kings_seen:
                kings_seen.add(color)
                position[square] = Occupant.create(color, kind)
            elif kind == PieceType.ROOK and _is_home_corner(square, color):
                position[square] = Occupant.create(color, kind, HOME_ROOK_INDEX[square])
            elif kind == PieceType.ROOK:
                rook_counters[color] += 1
                position[square] = Occupant.create(color, kind, rook_counters[color])
            else:
                counters[(color, kind)] += 1
                position[square] = Occupant.create(color, kind, counters[(color, kind)])
        return cls(position)

    @classmethod
    def from_placements(cls, placements: Iterable[tuple[str, Square]]) -> Self:
        """Rebuild a board from (identity, square) pairs, ex. coming out of a recovery snapshot."""
        position: dict[Square, Occupant] = {}
        for name, square in placements:
            if square in position:
                raise UnknownPieceError(
                    f"{name} and {position[square].name} both claim {square.to_algebraic()}"
                )
            position[square] = Occupant.from_name(name)
        return cls(position)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string. Row 0 (8th rank) comes first."""
        return "/".join(self._row_to_fen(row) for row in range(BOARD_DIMENSIONS[0]))

    def _row_to_fen(self, row: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for col in range(BOARD_DIMENSIONS[1]):
            occupant = self.occupant(Square(row, col))
            if occupant is None:
                empty_count += 1
                continue
            if empty_count > 0:
                fen_characters.append(str(empty_count))
                empty_count = 0
            fen_characters.append(occupant.to_fen())

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    # --- QUERIES ---
    def occupant(self, square: Square) -> Optional[Occupant]:
        return self.position.get(square)

    def is_occupied(self, square: Square) -> bool:
        return square in self.position

    def is_any_occupied(self, squares: Iterable[Square]) -> bool:
        return any(self.is_occupied(square) for square in squares)

    def locate(self, name: str) -> Optional[Square]:
        """Where does the piece with this identity stand? None if it is no longer on the board."""
        return next(
            (square for square, occupant in self.position.items() if occupant.name == name),
            None,
        )

    def locate_king(self, color: Color) -> Optional[Square]:
        return next(
            (
                square
                for square, occupant in self.position.items()
                if occupant.color == color and occupant.kind == PieceType.KING
            ),
            None,
        )

    def squares_between(self, start: Square, end: Square) -> list[Square]:
        """
        The open interval of squares strictly between start and end.
        ----

        Only defined along a rank, a file or a diagonal. Step direction is the sign of the displacement per axis.
        """
        d_row = end.row - start.row
        d_col = end.col - start.col
        if not (d_row == 0 or d_col == 0 or abs(d_row) == abs(d_col)):
            raise ValueError(
                f"{start.to_algebraic()} and {end.to_algebraic()} are not on a common line"
            )

        step_row, step_col = _sign(d_row), _sign(d_col)
        squares: list[Square] = []
        square = start.offset(step_row, step_col)
        while square != end and square != start:
            squares.append(square)
            square = square.offset(step_row, step_col)
        return squares

    def count_material(self) -> dict[Color, int]:
        """Tally the points of material each player has on the board"""
        material = {Color.WHITE: 0, Color.BLACK: 0}
        for occupant in self.position.values():
            material[occupant.color] += occupant.points
        return material

    # --- UPDATES (only the Match should call these) ---
    def place_piece(self, occupant: Occupant, square: Square) -> None:
        self.position[square] = occupant

    def remove_piece(self, square: Square) -> Optional[Occupant]:
        return self.position.pop(square, None)

    def move_piece(self, from_square: Square, to_square: Square) -> Optional[Occupant]:
        """Move whatever stands on from_square. Returns the occupant that got replaced on to_square (if any)."""
        moving = self.position.pop(from_square, None)
        if moving is None:
            raise UnknownPieceError(f"No piece on {from_square.to_algebraic()} to move")
        captured = self.position.get(to_square)
        self.position[to_square] = moving
        return captured

    def replace_piece(self, square: Square, occupant: Occupant) -> Occupant:
        """Swap the occupant in place (pawn promotion). Returns the one that was replaced."""
        previous = self.position.get(square)
        if previous is None:
            raise UnknownPieceError(f"No piece on {square.to_algebraic()} to replace")
        self.position[square] = occupant
        return previous


def _is_home_corner(square: Square, color: Color) -> bool:
    home_row = BOARD_DIMENSIONS[0] - 1 if color == Color.WHITE else 0
    return square.row == home_row and square in HOME_ROOK_INDEX
