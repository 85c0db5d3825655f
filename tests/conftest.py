"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.chess.board import Board
from src.chess.session import GameSession
from src.db.recovery import RecoveryStore
from src.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def starting_board() -> Board:
    return Board.starting_position()


@pytest.fixture
def empty_board() -> Board:
    return Board()


@pytest.fixture
def session() -> GameSession:
    return GameSession()


@pytest.fixture
def recovery_store(tmp_path: Path) -> RecoveryStore:
    """Recovery file in a fresh temporary directory: nothing to recover yet."""
    return RecoveryStore(tmp_path)
