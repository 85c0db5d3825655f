"""Implementation of (MoveLog)Repository using SQLAlchemy"""

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from src.core.models import MoveRecord
from src.db.schema import DBMove


class SQLMoveLogRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def record_move(self, record: MoveRecord) -> MoveRecord:
        """Store a confirmed move and return what got stored."""
        move_db = DBMove(
            match_id=record.match_id,
            ply=record.ply,
            uci=record.uci,
            active_piece=record.active_piece,
            taken_piece=record.taken_piece,
            fen=record.fen,
            san=record.san,
        )
        self.db.add(move_db)
        self.db.commit()
        self.db.refresh(move_db)
        return self._to_model(move_db)

    def list_moves(self, match_id: str) -> list[MoveRecord]:
        """All moves of a match, in the order they were played."""
        query = select(DBMove).where(DBMove.match_id == match_id).order_by(DBMove.ply)
        return [self._to_model(move_db) for move_db in self.db.scalars(query)]

    def delete_match(self, match_id: str) -> int:
        """Remove every move of a match."""
        result = self.db.execute(delete(DBMove).where(DBMove.match_id == match_id))
        self.db.commit()
        return result.rowcount

    def _to_model(self, move_db: DBMove) -> MoveRecord:
        """Convert SQLAlchemy model to data transfer model."""
        return MoveRecord(
            match_id=move_db.match_id,
            ply=move_db.ply,
            uci=move_db.uci,
            active_piece=move_db.active_piece,
            taken_piece=move_db.taken_piece,
            fen=move_db.fen,
            san=move_db.san,
        )
