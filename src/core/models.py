"""
Boundary layer data model(s).

Objects defined here travel between the domain layer (Match) and the persistence layer (move log),
so neither has to know about the other's internal representation.
"""

from dataclasses import dataclass
from typing import Optional

from src.core.shared_types import GameOutcome


@dataclass(frozen=True)
class Evaluation:
    """
    What the engine made of a position, ready to be shown.

    bar: 0 (White is winning) ... 10 (even) ... 20 (Black is winning)
    displayed: text next to the bar, ex. "1.3", "M4", "1-0", ".5 - .5"
    """

    bar: float
    displayed: str
    outcome: GameOutcome = GameOutcome.NONE
    best_move: Optional[str] = None


@dataclass
class MoveRecord:
    """Transport-safe representation of one confirmed move of a match."""

    match_id: str
    ply: int
    uci: str
    active_piece: str
    taken_piece: Optional[str]
    fen: str
    san: str
