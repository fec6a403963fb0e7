"""Database engine and repository for Solar Optimizer."""

from solar_optimizer.db.engine import close_db, init_db
from solar_optimizer.db.repository import Repository

__all__ = ["close_db", "init_db", "Repository"]
