# backend/timecapsule/db/init_db.py
from timecapsule.db.base import Base
from timecapsule.db.session import Database

# models must be imported so the tables are registered on Base.metadata
from timecapsule import models  # noqa: F401


def init_db(database: Database) -> None:
    Base.metadata.create_all(bind=database.engine)
