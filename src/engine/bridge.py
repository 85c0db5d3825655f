"""
Bridge to the external UCI engine used for evaluating positions.

One request = one engine process: start it, analyse the position to the configured depth
(or until think_time runs out), quit. python-chess speaks the protocol.

The evaluation is advisory. Whatever goes wrong here is logged and results in "no evaluation",
it never stops the game.
"""

import logging
from typing import Optional

import chess
import chess.engine

from src.chess.fen import is_valid_fen
from src.core.config import EngineSettings
from src.core.exceptions import InvalidFENError
from src.core.models import Evaluation
from src.core.shared_types import Color, GameOutcome

logger = logging.getLogger(__name__)

EVEN_BAR = 10.0
MIN_BAR, MAX_BAR = 1.0, 19.0
WINNING_BAR: dict[Color, float] = {Color.WHITE: 0.0, Color.BLACK: 20.0}
RESULT_TEXT: dict[Color, str] = {Color.WHITE: "1-0", Color.BLACK: "0-1"}
DRAW_TEXT = ".5 - .5"
CHECKMATE_BY_WINNER: dict[Color, GameOutcome] = {
    Color.WHITE: GameOutcome.CHECKMATE_WHITE,
    Color.BLACK: GameOutcome.CHECKMATE_BLACK,
}

ENGINE_FAILURES = (
    chess.engine.EngineError,
    chess.engine.EngineTerminatedError,
    OSError,
    TimeoutError,
)


def _color(turn: chess.Color) -> Color:
    return Color.WHITE if turn == chess.WHITE else Color.BLACK


def _won_by(winner: Color) -> Evaluation:
    return Evaluation(
        bar=WINNING_BAR[winner],
        displayed=RESULT_TEXT[winner],
        outcome=CHECKMATE_BY_WINNER[winner],
    )


def game_over_evaluation(board: chess.Board) -> Optional[Evaluation]:
    """The position needs no engine: the side to move is mated or stalemated."""
    if board.is_checkmate():
        return _won_by(_color(board.turn).opponent)
    if board.is_stalemate():
        return Evaluation(bar=EVEN_BAR, displayed=DRAW_TEXT, outcome=GameOutcome.STALEMATE)
    return None


def evaluation_from_info(info: chess.engine.InfoDict, board: chess.Board) -> Optional[Evaluation]:
    """
    Turn the engine's analysis into an Evaluation.
    ----

    The bar runs from 0 (White winning) to 20 (Black winning), so the score is read from White's point of view.

    * mate in 0: the side that just moved has won ("1-0" / "0-1").
    * mate N: "M|N|", bar at the end of the side that mates.
    * centipawns V: "|V/100|" with one decimal, bar 10 - V/100 clamped to [1, 19].
    """
    score = info.get("score")
    if score is None:
        return None

    pv = info.get("pv")
    best_move = pv[0].uci() if pv else None
    white = score.white()

    mate = white.mate()
    if mate == 0:
        return _won_by(_color(board.turn).opponent)
    if mate is not None:
        winner = Color.WHITE if mate > 0 else Color.BLACK
        return Evaluation(bar=WINNING_BAR[winner], displayed=f"M{abs(mate)}", best_move=best_move)

    pawns = white.score() / 100
    return Evaluation(
        bar=min(max(EVEN_BAR - pawns, MIN_BAR), MAX_BAR),
        displayed=f"{abs(pawns):.1f}",
        best_move=best_move,
    )


class EngineBridge:
    def __init__(self, settings: EngineSettings) -> None:
        self.settings = settings

    def analyse(self, board: chess.Board) -> Optional[chess.engine.InfoDict]:
        """Blocking, single-shot request. None if the engine is not configured or did not answer."""
        if self.settings.path is None:
            logger.debug("No engine configured, skipping evaluation")
            return None

        limit = chess.engine.Limit(depth=self.settings.depth, time=self.settings.think_time)
        try:
            engine = chess.engine.SimpleEngine.popen_uci(self.settings.path)
            try:
                return engine.analyse(board, limit)
            finally:
                engine.quit()
        except ENGINE_FAILURES:
            logger.exception("Engine %s gave no answer", self.settings.path)
            return None

    def evaluate(self, fen: str) -> Optional[Evaluation]:
        if not is_valid_fen(fen):
            raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen}")
        board = chess.Board(fen)

        finished = game_over_evaluation(board)
        if finished is not None:
            return finished

        info = self.analyse(board)
        if info is None:
            return None
        evaluation = evaluation_from_info(info, board)
        if evaluation is None:
            logger.warning("Engine analysis contained no score")
        return evaluation
