"""Wire everything together: configuration, logging, move log, recovery store, engine."""

import logging
from pathlib import Path

from src.core.config import DEFAULT_CONFIG_FILE, load_config
from src.core.log_setup import configure_logging
from src.db.database import create_session_factory
from src.db.recovery import RecoveryStore
from src.db.repository import MoveLogRepository
from src.db.sql_repository import SQLMoveLogRepository
from src.engine.bridge import EngineBridge
from src.services.match_service import MatchService

logger = logging.getLogger(__name__)


def bootstrap(config_path: Path = DEFAULT_CONFIG_FILE) -> MatchService:
    config = load_config(config_path)
    configure_logging(config.log_level, config.log_file)

    move_log: MoveLogRepository | None = None
    if config.database_url:
        session_factory = create_session_factory(config.database_url)
        move_log = SQLMoveLogRepository(session_factory())
        logger.info("Move log enabled")

    store = RecoveryStore(config.recovery_dir)
    engine = EngineBridge(config.engine) if config.engine.path else None
    return MatchService(store, move_log=move_log, config=config, engine=engine)
