"""
Representation of a single position as text. The format the engine understands and the one stored with every move.
"""

from dataclasses import dataclass
from itertools import combinations
from string import ascii_lowercase
from typing import Optional, Self

from src.chess.castling import CASTLING_ORDER, CastlingDirection, CastlingRights
from src.chess.pieces import FEN_TO_PIECE
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError
from src.core.shared_types import Color

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# every non-empty subset of KQkq, in canonical order, plus '-'
VALID_CASTLING_ENCODINGS: frozenset[str] = frozenset(
    ["-"]
    + [
        "".join(direction.value for direction in subset)
        for size in range(1, len(CASTLING_ORDER) + 1)
        for subset in combinations(CASTLING_ORDER, size)
    ]
)


def is_valid_fen(fen: str) -> bool:
    """
    Check if given string follows proper FEN notation.
    """

    # there should be 6 parts to the string
    parts = fen.split(" ")
    if len(parts) != 6:
        return False

    position, color, castling, en_passant, half_move_counter, full_move_counter = parts
    return (
        is_valid_position(position)
        and is_valid_color_code(color)
        and is_valid_castling_rights(castling)
        and is_valid_en_passant(en_passant)
        and is_valid_move_counter(half_move_counter)
        and is_valid_move_counter(full_move_counter)
    )


def is_valid_position(position: str) -> bool:
    """Only check the part of the FEN encoding for the board position."""
    num_rows, num_cols = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    if len(rank_fens) != num_rows:
        return False

    for rank_fen in rank_fens:
        file_count = 0
        for character in rank_fen:
            # make sure every character is valid
            if character.isdigit():
                file_count += int(character)
            elif character.lower() in FEN_TO_PIECE:
                file_count += 1
            else:
                return False

        # make sure you are creating a correctly sized board
        if file_count != num_cols:
            return False
    return True


def is_valid_color_code(color: str) -> bool:
    return color in {"w", "b"}


def is_valid_castling_rights(castling: str) -> bool:
    """A valid castling encoding has either KQkq, KQk, etc. or a '-' if all rights have been revoked."""
    return castling in VALID_CASTLING_ENCODINGS


def is_valid_en_passant(en_passant: str) -> bool:
    """Valid en passant square encoding should be a square that exists on the board or a '-'"""
    return (en_passant == "-") or is_valid_square(en_passant)


def is_valid_square(square: str) -> bool:
    """Valid square should be a letter for the file + a number for the rank"""
    num_rows, num_cols = BOARD_DIMENSIONS
    if len(square) < 2:
        return False

    file_char, rank_char = square[0], square[1:]
    if file_char not in ascii_lowercase[:num_cols]:
        return False
    return rank_char.isdigit() and 1 <= int(rank_char) <= num_rows


def is_valid_move_counter(counter: str) -> bool:
    return counter.isdigit()


def castling_rights_from_fen(castle_fen: str) -> CastlingRights:
    """
    FEN only knows which castling moves are still possible, not which piece moved.
    If both sides of a color are gone we attribute it to the king, otherwise to the rook of the missing side.
    """
    flags: dict[str, bool] = {}
    for color, king_flag, king_side, queen_side in (
        ("w", "cwk", CastlingDirection.WHITE_KING_SIDE, CastlingDirection.WHITE_QUEEN_SIDE),
        ("b", "cbk", CastlingDirection.BLACK_KING_SIDE, CastlingDirection.BLACK_QUEEN_SIDE),
    ):
        has_king_side = king_side.value in castle_fen
        has_queen_side = queen_side.value in castle_fen
        flags[king_flag] = not (has_king_side or has_queen_side)
        flags[f"c{color}r2"] = not has_king_side and has_queen_side
        flags[f"c{color}r1"] = not has_queen_side and has_king_side
    return CastlingRights(**flags)


@dataclass
class FENState:
    """
    Data that can be constructed from a FEN string.
    ----

    <board position string> <active color> <castling rights> <en passant square> <half move clock> <number of turns>

    * The board position string is produced by the Board (8th rank first)
    * The active color is either "w" or "b"
    * Castling rights KQkq (capital letters for White), "-" once all rights have been revoked.
    * The en passant square is the square a pawn may take on right now, "-" if there is none.
    * The half move clock counts the moves made since the last pawn move or capture (draw at 100).
    * The number of turns starts at 1 and increments after every move Black makes.

    ex) The standard starting position
    rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
    """

    position: str
    color_to_move: Color
    castling_rights: CastlingRights
    en_passant_square: Optional[Square]
    half_move_clock: int
    num_turns: int

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Parse the FEN into data"""
        if not is_valid_fen(fen):
            raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen}")

        (
            position,
            active_color,
            castling_str,
            en_passant_algebraic,
            half_move_clock,
            num_turns,
        ) = fen.split(" ")

        return cls(
            position=position,
            color_to_move=Color.WHITE if active_color == "w" else Color.BLACK,
            castling_rights=castling_rights_from_fen(castling_str),
            en_passant_square=(
                Square.from_algebraic(en_passant_algebraic)
                if en_passant_algebraic != "-"
                else None
            ),
            half_move_clock=int(half_move_clock),
            num_turns=int(num_turns),
        )

    def to_fen(self) -> str:
        """reverse operation: write a FEN from the given data"""
        active_color = "w" if self.color_to_move == Color.WHITE else "b"
        en_passant_algebraic = (
            self.en_passant_square.to_algebraic()
            if self.en_passant_square is not None
            else "-"
        )
        return (
            f"{self.position} {active_color} {self.castling_rights.to_fen()} "
            f"{en_passant_algebraic} {self.half_move_clock} {self.num_turns}"
        )


def repetition_key(fen: str) -> str:
    """Two positions repeat when the placement and the side to move are the same."""
    position, active_color = fen.split(" ")[:2]
    return f"{position} {active_color}"
