"""
The Match class is the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating everything that happens during one turn -->
validate the proposed move, apply it to the board and the session, keep the recovery snapshot in sync,
and wait for the physical board to catch up (complete_move) or to give up (rollback_move).
"""

import logging
from dataclasses import asdict, dataclass, replace
from typing import Optional, Protocol, Self
from uuid import uuid4

from src.chess.board import Board
from src.chess.castling import (
    CASTLING_HOME_SQUARES,
    CASTLING_RULES,
    CastlingDirection,
)
from src.chess.check import is_in_check
from src.chess.draws import (
    is_fifty_move_draw,
    is_insufficient_material,
    is_threefold_repetition,
)
from src.chess.fen import FENState, repetition_key
from src.chess.legality import has_legal_move, is_en_passant_capture, is_legal_move
from src.chess.moves import (
    PAWN_DIRECTION,
    MoveContext,
    is_double_push,
    is_promotion_move,
)
from src.chess.pieces import PIECE_TO_FEN, PROMOTION_OPTIONS, Occupant
from src.chess.rules import castling_attempt
from src.chess.san import to_san
from src.chess.session import PROMOTION_COUNTERS, GameSession, SessionState
from src.chess.square import Square, all_squares
from src.core.config import AppConfig
from src.core.connectivity import ConnectivityStatus
from src.core.exceptions import (
    GameStateError,
    NotYourTurnError,
    RobotNotReadyError,
    UnknownPieceError,
)
from src.core.models import Evaluation, MoveRecord
from src.core.shared_types import Color, GameOutcome, PieceType
from src.db.repository import MoveLogRepository

logger = logging.getLogger(__name__)

KING_SIDE = (CastlingDirection.WHITE_KING_SIDE, CastlingDirection.BLACK_KING_SIDE)
CHECKMATE_BY_WINNER: dict[Color, GameOutcome] = {
    Color.WHITE: GameOutcome.CHECKMATE_WHITE,
    Color.BLACK: GameOutcome.CHECKMATE_BLACK,
}


class RecoveryWriter(Protocol):
    """Just the part of the recovery store the Match needs"""

    def save_board(self, board: Board, enabled_color: Color, needed: bool) -> None: ...


@dataclass(frozen=True)
class AcceptedMove:
    """Snapshot of a move that passed validation and got applied."""

    start: Square
    end: Square
    active_piece: str
    taken_piece: Optional[str] = None
    castling: Optional[CastlingDirection] = None
    en_passant: bool = False
    promoted_to: Optional[str] = None
    fen: Optional[str] = None
    san: Optional[str] = None

    def to_uci(self) -> str:
        """ex. e2e4, e7e8q"""
        uci = self.start.to_algebraic() + self.end.to_algebraic()
        if self.promoted_to is not None:
            uci += PIECE_TO_FEN[Occupant.from_name(self.promoted_to).kind]
        return uci


@dataclass
class _PendingMove:
    """What to go back to if the physical move gets rejected."""

    position: dict[Square, Occupant]
    state: SessionState
    move: AcceptedMove


class Match:
    # --- DOMAIN LAYER API CALLED BY SERVICE ---

    def __init__(
        self,
        board: Board,
        session: GameSession,
        recovery: RecoveryWriter,
        config: Optional[AppConfig] = None,
        move_log: Optional[MoveLogRepository] = None,
        match_id: Optional[str] = None,
    ) -> None:
        self.board = board
        self.session = session
        self.recovery = recovery
        self.config = config or AppConfig()
        self.move_log = move_log
        self.match_id = match_id or uuid4().hex
        self.connectivity = ConnectivityStatus()
        self.ply = 0
        self._pending: Optional[_PendingMove] = None

    @classmethod
    def new(
        cls,
        recovery: RecoveryWriter,
        config: Optional[AppConfig] = None,
        move_log: Optional[MoveLogRepository] = None,
        starting_fen: Optional[str] = None,
        session: Optional[GameSession] = None,
    ) -> Self:
        """Start a match from the standard starting position (or from the given FEN)."""
        session = session or GameSession()
        session.reset_game()

        if starting_fen is None:
            board = Board.starting_position()
        else:
            state = FENState.from_fen(starting_fen)
            board = Board.from_fen(state.position)
            session.active_color = state.color_to_move
            session.halfmove = state.half_move_clock
            session.fullmove = state.num_turns
            session.en_passant_target = state.en_passant_square
            for flag, moved in asdict(state.castling_rights).items():
                session.set(flag, moved)

        match = cls(board, session, recovery, config, move_log)
        match._sync_promotion_counters()
        session.board_set = True
        session.was_playable = True
        match._record_position()
        match._save_recovery(needed=True)
        logger.info("New match %s started", match.match_id)
        return match

    @classmethod
    def resume(
        cls,
        board: Board,
        active_color: Color,
        recovery: RecoveryWriter,
        config: Optional[AppConfig] = None,
        move_log: Optional[MoveLogRepository] = None,
        session: Optional[GameSession] = None,
    ) -> Self:
        """
        Pick up an interrupted match from the last known occupancy.
        ----

        The recovery snapshot only knows where the pieces were, so:
        * a castling piece that is not on its home square has moved (its right is gone)
        * promotion counters continue after the highest identity still on the board
        * clocks restart (the snapshot does not carry them)

        Play stays on hold until the physical board has been checked (confirm_reconciled).
        """
        session = session or GameSession()
        session.reset_game()
        session.active_color = active_color

        match = cls(board, session, recovery, config, move_log)
        for name, home in CASTLING_HOME_SQUARES.items():
            if board.locate(name) != home:
                session.revoke_castling_right(name)
        match._sync_promotion_counters()

        session.hold_resume = True
        session.was_resumable = True
        match._record_position()
        logger.info(
            "Resumed match %s with %d pieces, %s to move",
            match.match_id,
            len(board.position),
            active_color,
        )
        return match

    def propose_move(
        self, start: Square, end: Square, promote_to: Optional[PieceType] = None
    ) -> Optional[AcceptedMove]:
        """
        Attempt to make a move
        -----

        1. make sure the match accepts moves right now (not over, not paused, robots ready...)
        2. Idle -> Validating (only one move in flight)
        3. is it the right color / is the move legal? Illegal: back to Idle and return None
        4. Validating -> Committing: apply the move to board + session
        5. write the recovery snapshot

        The move stays pending until complete_move() or rollback_move().
        """
        self._assert_accepting_moves()

        position_before = dict(self.board.position)
        state_before = self.session.snapshot()
        self.session.begin_move()
        try:
            accepted = self._validate_and_apply(start, end, promote_to)
        except Exception:
            self._restore(position_before, state_before)
            raise

        if accepted is None:
            self.session.abort_move()
            return None

        self._pending = _PendingMove(position_before, state_before, accepted)
        self._save_recovery(needed=True)
        logger.info("Move %s (%s) accepted", accepted.to_uci(), accepted.active_piece)

        if not self.config.confirm_move and not self.config.robot_actuation:
            self.complete_move()
        return accepted

    def complete_move(self) -> None:
        """The physical board caught up with the pending move: Committing -> Idle."""
        pending = self._require_pending()
        self.session.finish_move()
        self._pending = None
        self.ply += 1

        if self.move_log is not None:
            self.move_log.record_move(
                MoveRecord(
                    match_id=self.match_id,
                    ply=self.ply,
                    uci=pending.move.to_uci(),
                    active_piece=pending.move.active_piece,
                    taken_piece=pending.move.taken_piece,
                    fen=pending.move.fen or "",
                    san=pending.move.san or "",
                )
            )

        self._clear_move_flags()
        self._save_recovery(needed=not self.session.end_game)
        if self.session.end_game:
            logger.info("Match %s ended: %s", self.match_id, self.session.outcome.name)

    def rollback_move(self) -> None:
        """The pending move was rejected or its actuation failed: restore board and session."""
        pending = self._require_pending()
        self._restore(pending.position, pending.state)
        self._pending = None
        self._save_recovery(needed=True)
        logger.warning("Move %s rolled back", pending.move.to_uci())

    def legal_destinations(self, start: Square) -> list[Square]:
        """Squares the piece on `start` can move to right now (for highlighting)."""
        occupant = self.board.occupant(start)
        if occupant is None or occupant.color != self.session.active_color:
            return []
        context = self._move_context()
        return [
            end
            for end in all_squares()
            if end != start and is_legal_move(start, end, context)
        ]

    def apply_evaluation(self, evaluation: Evaluation) -> None:
        """Copy what the engine made of the position into the session."""
        self.session.quantified_evaluation = evaluation.bar
        self.session.displayed_advantage = evaluation.displayed
        self.session.top_engine_move = evaluation.best_move
        if evaluation.outcome != GameOutcome.NONE and not self.session.end_game:
            self.session.outcome = evaluation.outcome

    def update_connectivity(self, status: ConnectivityStatus) -> None:
        """Fresh snapshot from the watchdog. Losing the robots mid-game pauses the match."""
        self.connectivity = status
        if self.config.robot_actuation and not status.ready and not self.session.is_paused:
            offline = [str(color) for color in Color if not status.is_connected(color)]
            logger.warning(
                "Robots not ready (offline: %s), pausing match %s",
                ", ".join(offline) or "none",
                self.match_id,
            )
            self.pause()

    def pause(self) -> None:
        self.session.was_playable = not self.session.end_game
        self.session.is_paused = True

    def resume_play(self) -> None:
        if self.config.robot_actuation and not self.connectivity.ready:
            raise RobotNotReadyError("Cannot resume: robots are not ready")
        self.session.is_paused = False

    def confirm_reconciled(self) -> None:
        """The physical board has been checked against the recovered occupancy: play can continue."""
        if not self.session.hold_resume:
            raise GameStateError("Match is not waiting for reconciliation")
        self.session.hold_resume = False
        self.session.board_set = True
        self.session.was_playable = True
        self._save_recovery(needed=True)

    # -- PRIVATE HELPERS ---
    def _assert_accepting_moves(self) -> None:
        session = self.session
        if session.end_game:
            raise GameStateError(f"Game is over: {session.outcome.name}")
        if session.is_paused:
            raise GameStateError("Game is paused")
        if session.hold_resume:
            raise GameStateError("Resumed match waits for the physical board to be reconciled")
        if self.config.robot_actuation and not self.connectivity.ready:
            raise RobotNotReadyError("Robot actuation is enabled, but the robots are not ready")

    def _require_pending(self) -> _PendingMove:
        if self._pending is None:
            raise GameStateError("No move is waiting for the physical board")
        return self._pending

    def _move_context(self) -> MoveContext:
        return MoveContext(
            board=self.board,
            color=self.session.active_color,
            castling_rights=self.session.castling_rights(),
            en_passant_target=self.session.en_passant_target,
        )

    def _validate_and_apply(
        self, start: Square, end: Square, promote_to: Optional[PieceType]
    ) -> Optional[AcceptedMove]:
        mover = self.board.occupant(start)
        if mover is not None and mover.color != self.session.active_color:
            raise NotYourTurnError(
                f"{mover.name} cannot move, it is {self.session.active_color}'s turn"
            )

        context = self._move_context()
        if not is_legal_move(start, end, context):
            logger.info("Illegal move %s%s", start.to_algebraic(), end.to_algebraic())
            return None

        if promote_to is not None and promote_to not in PROMOTION_OPTIONS:
            raise UnknownPieceError(f"A pawn cannot promote to {promote_to}")

        self.session.commit_move()
        # mover cannot be None here, validation raises on an empty start square
        assert mover is not None
        return self._apply_move(start, end, mover, context, promote_to)

    def _apply_move(
        self,
        start: Square,
        end: Square,
        mover: Occupant,
        context: MoveContext,
        promote_to: Optional[PieceType],
    ) -> AcceptedMove:
        """
        Call for the proper updates of the Board and the Session
        """
        session = self.session
        color = mover.color
        # SAN is written against the position before the move
        before = replace(context, board=Board(dict(self.board.position)))

        # board
        en_passant = is_en_passant_capture(start, end, context)
        castling = (
            castling_attempt(start, end, context) if mover.kind == PieceType.KING else None
        )
        if en_passant:
            taken = self.board.remove_piece(Square(start.row, end.col))
            self.board.move_piece(start, end)
        else:
            taken = self.board.move_piece(start, end)

        if castling is not None:
            rule = CASTLING_RULES[castling]
            self.board.move_piece(rule.rook_from, rule.rook_to)

        promoted_to = None
        if mover.kind == PieceType.PAWN and is_promotion_move(end, color):
            promoted_to = self._promote_pawn(end, color, promote_to)

        # per-move flags & last move metadata
        session.active_piece = mover.name
        session.taken_piece = taken.name if taken else None
        session.capture = taken is not None
        session.en_passant = en_passant
        session.king_castle = castling in KING_SIDE
        session.queen_castle = castling is not None and castling not in KING_SIDE
        session.promoted = promoted_to is not None
        session.promoted_pawn = mover.name if promoted_to else None
        session.promoted_to = promoted_to
        session.top_engine_move = None

        # castling rights go by identity: the mover, and whatever got taken
        session.revoke_castling_right(mover.name)
        if taken is not None:
            session.revoke_castling_right(taken.name)

        # en passant target lives for exactly one ply
        if mover.kind == PieceType.PAWN and is_double_push(start, end):
            session.en_passant_target = start.offset(PAWN_DIRECTION[color], 0)
            session.en_passant_created = True
        else:
            session.en_passant_target = None
            session.en_passant_created = False

        # clocks
        if mover.kind == PieceType.PAWN or taken is not None:
            session.halfmove = 0
        else:
            session.halfmove = session.halfmove + 1
        if color == Color.BLACK:
            session.fullmove = session.fullmove + 1

        # NOTE update color to move AFTER everything that depends on the mover's color
        session.active_color = color.opponent
        self._record_position()

        san = to_san(
            start,
            end,
            before,
            promoted_to=Occupant.from_name(promoted_to).kind if promoted_to else None,
            check=is_in_check(session.active_color, self.board),
            mate=session.outcome in CHECKMATE_BY_WINNER.values(),
        )
        return AcceptedMove(
            start=start,
            end=end,
            active_piece=mover.name,
            taken_piece=taken.name if taken else None,
            castling=castling,
            en_passant=en_passant,
            promoted_to=promoted_to,
            fen=session.fen,
            san=san,
        )

    def _promote_pawn(
        self, square: Square, color: Color, promote_to: Optional[PieceType]
    ) -> str:
        """Swap the pawn for a fresh identity. Chosen kind, else the preselected one, else a queen."""
        kind = promote_to or self.session.promotion_piece or PieceType.QUEEN
        index = self.session.next_promotion_index(color, kind)
        promoted = Occupant.create(color, kind, index)
        self.board.replace_piece(square, promoted)
        return promoted.name

    def _record_position(self) -> None:
        """FEN, material, repetition bookkeeping and end-of-game detection for the position on the board."""
        session = self.session
        fen = FENState(
            position=self.board.to_fen(),
            color_to_move=session.active_color,
            castling_rights=session.castling_rights(),
            en_passant_square=session.en_passant_target,
            half_move_clock=session.halfmove,
            num_turns=session.fullmove,
        ).to_fen()
        session.previous_fen = session.fen
        session.fen = fen

        material = self.board.count_material()
        session.white_material = material[Color.WHITE]
        session.black_material = material[Color.BLACK]

        occurrences = session.append_position(repetition_key(fen))
        session.outcome = self._detect_outcome(occurrences)

    def _detect_outcome(self, occurrences: int) -> GameOutcome:
        """Performs checks to see if the game has ended. The side to move is the one that has to answer."""
        to_move = self.session.active_color
        if not has_legal_move(self._move_context()):
            if is_in_check(to_move, self.board):
                return CHECKMATE_BY_WINNER[to_move.opponent]
            return GameOutcome.STALEMATE
        if is_threefold_repetition(occurrences):
            return GameOutcome.THREEFOLD_DRAW
        if is_fifty_move_draw(self.session.halfmove):
            return GameOutcome.FIFTY_MOVE_DRAW
        if is_insufficient_material(self.board):
            return GameOutcome.INSUFFICIENT_MATERIAL_DRAW
        return GameOutcome.NONE

    def _sync_promotion_counters(self) -> None:
        """Promoted identities already on the board must never be handed out again."""
        for occupant in self.board.position.values():
            counter = PROMOTION_COUNTERS.get((occupant.color, occupant.kind))
            if counter is None or occupant.index is None:
                continue
            if getattr(self.session, counter) <= occupant.index:
                self.session.set(counter, occupant.index + 1)

    def _clear_move_flags(self) -> None:
        for flag in (
            "capture",
            "en_passant",
            "en_passant_created",
            "king_castle",
            "queen_castle",
            "promoted",
        ):
            self.session.set(flag, False)
        self.session.promotion_piece = None

    def _restore(self, position: dict[Square, Occupant], state: SessionState) -> None:
        self.board.position.clear()
        self.board.position.update(position)
        self.session.restore(state)

    def _save_recovery(self, needed: bool) -> None:
        try:
            self.recovery.save_board(self.board, self.session.active_color, needed)
        except OSError:
            logger.exception("Could not write the recovery snapshot")
