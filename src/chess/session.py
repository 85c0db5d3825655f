"""
The Game Session is the single, authoritative record of everything about the match that is not the occupancy itself:
whose turn it is, castling rights, counters, per-move flags, engine evaluation and the terminal state.

All writes go through GameSession.set() (attribute assignment on a session field is routed there as well):
* writing the value a field already has is a no-op
* every real change is announced to the subscribed listeners, synchronously, in the order they subscribed
"""

import copy
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Optional

from src.chess.castling import CASTLING_FLAG_BY_NAME, CastlingRights
from src.chess.square import Square
from src.core.exceptions import GameStateError, MoveInProgressError
from src.core.shared_types import Color, GameOutcome, PieceType, TurnPhase

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]


@dataclass
class SessionState:
    """Plain state struct. Field defaults are the values at the start of a match."""

    # --- turn ---
    active_color: Color = Color.WHITE
    halfmove: int = 0
    fullmove: int = 1
    phase: TurnPhase = TurnPhase.IDLE

    # --- castling: True once that king / rook has moved or has been captured ---
    cwk: bool = False
    cwr1: bool = False
    cwr2: bool = False
    cbk: bool = False
    cbr1: bool = False
    cbr2: bool = False
    # the move in flight is a king-side / queen-side castle
    king_castle: bool = False
    queen_castle: bool = False

    # --- identity suffix for the next promoted piece of each kind ---
    num_wn: int = 3
    num_wb: int = 3
    num_wr: int = 3
    num_wq: int = 2
    num_bn: int = 3
    num_bb: int = 3
    num_br: int = 3
    num_bq: int = 2

    # --- per-move flags ---
    capture: bool = False
    en_passant_created: bool = False
    en_passant: bool = False
    promoted: bool = False
    promotion_piece: Optional[PieceType] = None
    en_passant_target: Optional[Square] = None

    # --- last move metadata ---
    active_piece: Optional[str] = None
    taken_piece: Optional[str] = None
    promoted_pawn: Optional[str] = None
    promoted_to: Optional[str] = None
    fen: Optional[str] = None
    previous_fen: Optional[str] = None

    # --- coordination with the physical board ---
    hold_resume: bool = False
    was_playable: bool = False
    was_resumable: bool = False
    is_paused: bool = False
    board_set: bool = False

    # --- material & engine evaluation (bar runs from 0 = White winning to 20 = Black winning) ---
    white_material: int = 0
    black_material: int = 0
    quantified_evaluation: float = 10.0
    displayed_advantage: str = "0.0"
    # best move the engine found for the position on the board (UCI), None once the position changes
    top_engine_move: Optional[str] = None

    # --- terminal state ---
    outcome: GameOutcome = GameOutcome.NONE

    # --- collections (cleared in place, others may hold a reference) ---
    game_fens: list[str] = field(default_factory=list)


SESSION_FIELDS: frozenset[str] = frozenset(f.name for f in fields(SessionState))
COLLECTION_FIELDS: frozenset[str] = frozenset(["game_fens"])

# counter field per (color, kind) a promotion can produce
PROMOTION_COUNTERS: dict[tuple[Color, PieceType], str] = {
    (Color.WHITE, PieceType.KNIGHT): "num_wn",
    (Color.WHITE, PieceType.BISHOP): "num_wb",
    (Color.WHITE, PieceType.ROOK): "num_wr",
    (Color.WHITE, PieceType.QUEEN): "num_wq",
    (Color.BLACK, PieceType.KNIGHT): "num_bn",
    (Color.BLACK, PieceType.BISHOP): "num_bb",
    (Color.BLACK, PieceType.ROOK): "num_br",
    (Color.BLACK, PieceType.QUEEN): "num_bq",
}


class GameSession:
    """
    Mutable session record with change notification.

    ex)
        session = GameSession()
        session.subscribe(lambda name, value: print(name, value))
        session.halfmove = 3      # -> prints "halfmove 3"
        session.halfmove = 3      # -> nothing, value did not change
    """

    def __init__(self) -> None:
        object.__setattr__(self, "_state", SessionState())
        object.__setattr__(self, "_listeners", [])

    # --- ATTRIBUTE ACCESS ---
    def __getattr__(self, name: str) -> Any:
        # only reached when normal lookup fails, so _state itself never comes through here
        if name in SESSION_FIELDS:
            return getattr(self._state, name)
        raise AttributeError(f"{type(self).__name__!r} has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name in SESSION_FIELDS:
            self.set(name, value)
        else:
            object.__setattr__(self, name, value)

    # --- OBSERVERS ---
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, name: str, value: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(name, value)
            except Exception:
                # one broken observer must not stop the others or the move that triggered it
                logger.exception("Session listener %r failed on %s", listener, name)

    # --- THE ONE MUTATION ENTRY POINT ---
    def set(self, name: str, value: Any) -> bool:
        """Write a field. Returns True (and notifies) only if the value actually changed."""
        if name not in SESSION_FIELDS:
            raise AttributeError(f"Unknown session field: {name!r}")
        if getattr(self._state, name) == value:
            return False
        setattr(self._state, name, value)
        self._notify(name, value)
        return True

    def reset_game(self) -> None:
        """Back to the start of a match. Collections are emptied in place, never replaced."""
        defaults = SessionState()
        for name in SESSION_FIELDS - COLLECTION_FIELDS:
            self.set(name, getattr(defaults, name))
        for name in COLLECTION_FIELDS:
            collection = getattr(self._state, name)
            if collection:
                collection.clear()
                self._notify(name, collection)

    # --- ROLLBACK SUPPORT ---
    def snapshot(self) -> SessionState:
        return copy.deepcopy(self._state)

    def restore(self, snapshot: SessionState) -> None:
        """Write every field of a snapshot back through the setter, collections in place."""
        for name in SESSION_FIELDS - COLLECTION_FIELDS:
            self.set(name, getattr(snapshot, name))
        for name in COLLECTION_FIELDS:
            collection = getattr(self._state, name)
            saved = getattr(snapshot, name)
            if collection != saved:
                collection[:] = saved
                self._notify(name, collection)

    def append_position(self, key: str) -> int:
        """Record a position for the repetition rule. Returns how often it has occurred so far."""
        self._state.game_fens.append(key)
        self._notify("game_fens", self._state.game_fens)
        return self._state.game_fens.count(key)

    # --- DERIVED VIEWS ---
    @property
    def move_in_progress(self) -> bool:
        return self._state.phase != TurnPhase.IDLE

    @property
    def checkmate(self) -> bool:
        return self._state.outcome in (GameOutcome.CHECKMATE_WHITE, GameOutcome.CHECKMATE_BLACK)

    @property
    def stalemate(self) -> bool:
        return self._state.outcome == GameOutcome.STALEMATE

    @property
    def threefold_repetition(self) -> bool:
        return self._state.outcome == GameOutcome.THREEFOLD_DRAW

    @property
    def end_game(self) -> bool:
        return self._state.outcome != GameOutcome.NONE

    def castling_rights(self) -> CastlingRights:
        return CastlingRights(
            **{flag: getattr(self._state, flag) for flag in CASTLING_FLAG_BY_NAME.values()}
        )

    def revoke_castling_right(self, name: str) -> None:
        """The piece with this identity moved or got captured. Anything that is not a castling piece is ignored."""
        flag = CASTLING_FLAG_BY_NAME.get(name)
        if flag is not None:
            self.set(flag, True)

    def next_promotion_index(self, color: Color, kind: PieceType) -> int:
        """Hand out the identity suffix for a freshly promoted piece and advance the counter."""
        counter = PROMOTION_COUNTERS[(color, kind)]
        index = getattr(self._state, counter)
        self.set(counter, index + 1)
        return index

    # --- TURN STATE MACHINE ---
    def begin_move(self) -> None:
        """Idle -> Validating. Only one move can be in flight."""
        if self._state.phase != TurnPhase.IDLE:
            raise MoveInProgressError(
                f"Cannot start a new move while in phase {self._state.phase.name}"
            )
        self.set("phase", TurnPhase.VALIDATING)

    def commit_move(self) -> None:
        """Validating -> Committing: the move was legal and is being applied / actuated."""
        self._transition(TurnPhase.VALIDATING, TurnPhase.COMMITTING)

    def finish_move(self) -> None:
        """Committing -> Idle: the physical board caught up."""
        self._transition(TurnPhase.COMMITTING, TurnPhase.IDLE)

    def abort_move(self) -> None:
        """Any phase -> Idle: the move was illegal, rejected or rolled back."""
        self.set("phase", TurnPhase.IDLE)

    def _transition(self, expected: TurnPhase, new: TurnPhase) -> None:
        if self._state.phase != expected:
            raise GameStateError(
                f"Expected phase {expected.name} to move to {new.name}, but phase is {self._state.phase.name}"
            )
        self.set("phase", new)
