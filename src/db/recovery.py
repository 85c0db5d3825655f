"""
Crash-recovery snapshot of the board, stored as a human readable JSON file next to the application.

    {
      "RecoveryNeeded": true,
      "Pieces": {
        "WhiteKing": {"Name": "WhiteKing", "Row": 7, "Col": 4, "Z": 1, "Enabled": true, "Tag": "WhitePiece"},
        ...
      }
    }

Field names are part of the file format and must not change.
Reading never fails: a missing or broken file simply means there is nothing to recover.
"""

import logging
import os
from enum import Enum, auto
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.chess.board import Board
from src.chess.square import Square
from src.core.exceptions import ChessError
from src.core.shared_types import Color

logger = logging.getLogger(__name__)

RECOVERY_FILENAME = "recovery.json"


class PieceRecord(BaseModel):
    """One occupant as the physical/visual layer knows it"""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="Name")
    row: int = Field(alias="Row", ge=0, le=7)
    col: int = Field(alias="Col", ge=0, le=7)
    z: int = Field(default=1, alias="Z")
    enabled: bool = Field(default=False, alias="Enabled")
    tag: Optional[str] = Field(default=None, alias="Tag")


class RecoveryFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recovery_needed: bool = Field(default=False, alias="RecoveryNeeded")
    pieces: dict[str, PieceRecord] = Field(default_factory=dict, alias="Pieces")


class ClearOutcome(Enum):
    REMOVED = auto()
    ABSENT = auto()
    # the file is still there: the caller should warn about it
    DENIED = auto()


def build_snapshot(board: Board, enabled_color: Color) -> dict[str, PieceRecord]:
    """Project the occupancy onto piece records. Only the pieces of the side to move are enabled."""
    return {
        occupant.name: PieceRecord(
            name=occupant.name,
            row=square.row,
            col=square.col,
            z=1,
            enabled=occupant.color == enabled_color,
            tag=f"{occupant.color}Piece",
        )
        for square, occupant in board.position.items()
    }


def board_from_snapshot(pieces: dict[str, PieceRecord]) -> Board:
    """Rebuild the occupancy. Unknown identities / two pieces on one square raise UnknownPieceError."""
    return Board.from_placements(
        (record.name, Square(record.row, record.col)) for record in pieces.values()
    )


def enabled_color(pieces: dict[str, PieceRecord]) -> Optional[Color]:
    """Whose pieces were selectable when the snapshot was taken, i.e. the side to move."""
    for record in pieces.values():
        if record.enabled:
            return Color.WHITE if record.name.startswith(Color.WHITE) else Color.BLACK
    return None


class RecoveryStore:
    """
    Owns the recovery file. Reads it once on construction, see recovery_needed / recovery_pieces.

    NOTE: one store per process. The file is not locked against other writers.
    """

    def __init__(self, directory: Path, filename: str = RECOVERY_FILENAME) -> None:
        self.path = Path(directory) / filename
        self.recovery_needed = False
        self.recovery_pieces: Optional[dict[str, PieceRecord]] = None
        self.load_recovery()

    def save_recovery(self, pieces: dict[str, PieceRecord], needed: bool) -> None:
        """Overwrite the snapshot. Written to a temporary file first so a crash never leaves half a file behind."""
        self.recovery_pieces = pieces
        self.recovery_needed = needed

        payload = RecoveryFile(recovery_needed=needed, pieces=pieces)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(payload.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def save_board(self, board: Board, enabled_color: Color, needed: bool) -> None:
        self.save_recovery(build_snapshot(board, enabled_color), needed)

    def load_recovery(self) -> tuple[bool, Optional[dict[str, PieceRecord]]]:
        """(needed, pieces). Anything that goes wrong while reading means (False, None)."""
        self.recovery_needed = False
        self.recovery_pieces = None

        if not self.path.exists():
            return False, None

        try:
            payload = RecoveryFile.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as exc:
            logger.warning("Ignoring unreadable recovery file %s: %s", self.path, exc)
            return False, None

        self.recovery_needed = payload.recovery_needed
        self.recovery_pieces = payload.pieces
        return self.recovery_needed, self.recovery_pieces

    def clear_recovery(self) -> ClearOutcome:
        """Forget the snapshot and delete the file. A file that cannot be deleted is reported, not raised."""
        self.recovery_needed = False
        self.recovery_pieces = None
        try:
            self.path.unlink()
        except FileNotFoundError:
            return ClearOutcome.ABSENT
        except OSError as exc:
            logger.warning("Could not delete recovery file %s: %s", self.path, exc)
            return ClearOutcome.DENIED
        return ClearOutcome.REMOVED

    def recovered_board(self) -> Optional[Board]:
        """The occupancy to reconcile against, if a recovery is needed and the snapshot makes sense."""
        if not self.recovery_needed or not self.recovery_pieces:
            return None
        try:
            return board_from_snapshot(self.recovery_pieces)
        except ChessError as exc:
            logger.warning("Recovery snapshot cannot be turned into a board: %s", exc)
            return None
