"""Protocol repository for the move log (implemented with SQLAlchemy in sql_repository.py)"""

from typing import Protocol

from src.core.models import MoveRecord


class MoveLogRepository(Protocol):
    """Persistence layer orchestration"""

    def record_move(self, record: MoveRecord) -> MoveRecord:
        """Store a confirmed move and return what got stored."""
        ...

    def list_moves(self, match_id: str) -> list[MoveRecord]:
        """All moves of a match, in the order they were played."""
        ...

    def delete_match(self, match_id: str) -> int:
        """Remove every move of a match. Returns how many records were removed."""
        ...
