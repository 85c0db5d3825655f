"""
Standard algebraic notation (SAN) for the move log and the PGN game record.

SAN needs the position BEFORE the move (what was taken, which other piece could have gone there),
and what happened AFTER it (promotion, check, mate). The caller supplies both.
"""

from datetime import date
from typing import Optional

from src.chess.castling import KING_SIDE_COL
from src.chess.legality import is_en_passant_capture, is_legal_move
from src.chess.moves import MoveContext
from src.chess.pieces import PIECE_TO_FEN
from src.chess.rules import castling_attempt
from src.chess.square import Square
from src.core.exceptions import UnknownPieceError
from src.core.shared_types import GameOutcome, PieceType

RESULT_TOKEN: dict[GameOutcome, str] = {
    GameOutcome.NONE: "*",
    GameOutcome.CHECKMATE_WHITE: "1-0",
    GameOutcome.CHECKMATE_BLACK: "0-1",
    GameOutcome.STALEMATE: "1/2-1/2",
    GameOutcome.FIFTY_MOVE_DRAW: "1/2-1/2",
    GameOutcome.THREEFOLD_DRAW: "1/2-1/2",
    GameOutcome.INSUFFICIENT_MATERIAL_DRAW: "1/2-1/2",
}


def _letter(kind: PieceType) -> str:
    return PIECE_TO_FEN[kind].upper()


def _disambiguation(start: Square, end: Square, context: MoveContext) -> str:
    """File, rank or both of the start square, as far as needed to tell two candidates apart."""
    mover = context.board.occupant(start)
    assert mover is not None
    rivals = [
        square
        for square, occupant in context.board.position.items()
        if square != start
        and occupant.color == mover.color
        and occupant.kind == mover.kind
        and is_legal_move(square, end, context)
    ]
    if not rivals:
        return ""
    algebraic = start.to_algebraic()
    if all(square.col != start.col for square in rivals):
        return algebraic[0]
    if all(square.row != start.row for square in rivals):
        return algebraic[1:]
    return algebraic


def to_san(
    start: Square,
    end: Square,
    context: MoveContext,
    promoted_to: Optional[PieceType] = None,
    check: bool = False,
    mate: bool = False,
) -> str:
    """
    ex. e4, Nbd2, exd6, Qxf7#, e8=Q+, O-O

    context: the position the move is played from
    promoted_to: kind the pawn turned into, if it promoted
    check / mate: state of the opponent after the move
    """
    mover = context.board.occupant(start)
    if mover is None:
        raise UnknownPieceError(f"No piece on {start.to_algebraic()}")

    castling = castling_attempt(start, end, context) if mover.kind == PieceType.KING else None
    capture = context.board.is_occupied(end) or is_en_passant_capture(start, end, context)

    if castling is not None:
        notation = "O-O" if end.col == KING_SIDE_COL else "O-O-O"
    elif mover.kind == PieceType.PAWN:
        notation = f"{start.to_algebraic()[0]}x" if capture else ""
        notation += end.to_algebraic()
        if promoted_to is not None:
            notation += f"={_letter(promoted_to)}"
    else:
        notation = _letter(mover.kind)
        if mover.kind != PieceType.KING:
            notation += _disambiguation(start, end, context)
        notation += ("x" if capture else "") + end.to_algebraic()

    if mate:
        return notation + "#"
    if check:
        return notation + "+"
    return notation


def pgn_movetext(
    moves: list[str], first_fullmove: int = 1, black_first: bool = False
) -> str:
    """
    ex. ["e4", "e5", "Nf3"] -> "1. e4 e5 2. Nf3"
    A game starting with Black opens with "<n>...".
    """
    tokens: list[str] = []
    fullmove = first_fullmove
    white_to_move = not black_first
    for index, san in enumerate(moves):
        if white_to_move:
            tokens.append(f"{fullmove}.")
        elif index == 0:
            tokens.append(f"{fullmove}...")
        tokens.append(san)
        if not white_to_move:
            fullmove += 1
        white_to_move = not white_to_move
    return " ".join(tokens)


def pgn_game(
    moves: list[str],
    outcome: GameOutcome = GameOutcome.NONE,
    white: str = "User",
    black: str = "User",
    played_on: Optional[date] = None,
    first_fullmove: int = 1,
    black_first: bool = False,
) -> str:
    """Seven tag roster followed by the movetext and the result."""
    result = RESULT_TOKEN[outcome]
    headers = {
        "Event": "Chess Match",
        "Site": "Robotic Chess Board",
        "Date": (played_on or date.today()).strftime("%Y.%m.%d"),
        "Round": "1",
        "White": white,
        "Black": black,
        "Result": result,
    }
    lines: list[str] = []
    for tag, value in headers.items():
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        lines.append(f'[{tag} "{escaped}"]')
    movetext = pgn_movetext(moves, first_fullmove, black_first)
    body = f"{movetext} {result}" if movetext else result
    return "\n".join(lines) + "\n\n" + body + "\n"
