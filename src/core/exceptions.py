"""
Custom exceptions.

An illegal move is NOT an exception: validators simply answer False.
These are for caller contract violations and for requests the game cannot accept in its current state.
"""


class ChessError(Exception):
    """Base class for everything raised by this package."""


class InvalidSquareError(ChessError):
    """A square outside of the 8x8 board was handed to the rules."""


class UnknownPieceError(ChessError):
    """No occupant on the square, or an occupant identity that cannot be interpreted."""


class InvalidFENError(ChessError):
    """String cannot be interpreted as a FEN position."""


class ConfigError(ChessError):
    """Configuration file exists but cannot be parsed."""


class GameStateError(ChessError):
    """Request does not fit the current state of the game (game over, paused, awaiting reconciliation...)."""


class MoveInProgressError(GameStateError):
    """A new move was proposed while the previous one is still being validated or actuated."""


class RobotNotReadyError(GameStateError):
    """Robot actuation is enabled, but the latest connectivity snapshot says the robots cannot move."""


class NotYourTurnError(ChessError):
    """Piece selected does not belong to the side to move."""
