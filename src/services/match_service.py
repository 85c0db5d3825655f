"""Orchestration between the domain layer (Match) and the persistence layers (recovery file, move log, engine)."""

import logging
from typing import Optional

from src.chess.fen import FENState
from src.chess.game import Match
from src.chess.pieces import Occupant
from src.chess.san import pgn_game
from src.core.config import AppConfig
from src.core.exceptions import GameStateError
from src.core.models import Evaluation
from src.core.shared_types import Color
from src.db.recovery import ClearOutcome, RecoveryStore, enabled_color
from src.db.repository import MoveLogRepository
from src.engine.bridge import EngineBridge

logger = logging.getLogger(__name__)


class MatchService:
    """Orchestration of layers for one physical board."""

    def __init__(
        self,
        store: RecoveryStore,
        move_log: Optional[MoveLogRepository] = None,
        config: Optional[AppConfig] = None,
        engine: Optional[EngineBridge] = None,
    ) -> None:
        self.store = store
        self.move_log = move_log
        self.config = config or AppConfig()
        self.engine = engine

    def start_up(self) -> Match:
        """
        Called once when the application starts.
        ----

        The store has read the recovery file on construction. If it says a match got interrupted,
        resume it (on hold until the physical board is reconciled). Otherwise start a fresh match.
        """
        board = self.store.recovered_board()
        if board is None:
            return self.new_match()

        # the store only hands out a board when there are pieces to recover
        assert self.store.recovery_pieces is not None
        to_move = enabled_color(self.store.recovery_pieces) or Color.WHITE
        logger.warning("Interrupted match found, resuming with %s to move", to_move)
        return Match.resume(
            board,
            to_move,
            recovery=self.store,
            config=self.config,
            move_log=self.move_log,
        )

    def new_match(self, starting_fen: Optional[str] = None) -> Match:
        """Forget any previous snapshot and set up a new match."""
        self._clear_recovery()
        return Match.new(
            recovery=self.store,
            config=self.config,
            move_log=self.move_log,
            starting_fen=starting_fen,
        )

    def end_match(self, match: Match) -> ClearOutcome:
        """A finished match has nothing left to recover."""
        if not match.session.end_game:
            raise GameStateError("Match is still in progress")
        return self._clear_recovery()

    def evaluate(self, match: Match) -> Optional[Evaluation]:
        """Ask the engine about the current position and show the result. No engine / no answer: nothing changes."""
        if self.engine is None or match.session.fen is None:
            return None
        evaluation = self.engine.evaluate(match.session.fen)
        if evaluation is not None:
            match.apply_evaluation(evaluation)
        return evaluation

    def game_record(self, match: Match, white: str = "User", black: str = "User") -> str:
        """PGN of the match, built from the move log."""
        if self.move_log is None:
            raise GameStateError("No move log configured, the game cannot be written out")
        moves = self.move_log.list_moves(match.match_id)

        first_fullmove, black_first = 1, False
        if moves:
            # the log keeps the position after each move
            black_first = Occupant.from_name(moves[0].active_piece).color == Color.BLACK
            fullmove = FENState.from_fen(moves[0].fen).num_turns
            first_fullmove = fullmove - 1 if black_first else fullmove

        return pgn_game(
            [move.san for move in moves],
            outcome=match.session.outcome,
            white=white,
            black=black,
            first_fullmove=first_fullmove,
            black_first=black_first,
        )

    # -- Internal helpers --
    def _clear_recovery(self) -> ClearOutcome:
        outcome = self.store.clear_recovery()
        if outcome == ClearOutcome.DENIED:
            logger.warning(
                "Recovery file %s could not be removed, it will be overwritten by the next move",
                self.store.path,
            )
        return outcome
