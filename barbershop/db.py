# barbershop/db.py

import logging

from sqlmodel import SQLModel, create_engine, Session

from barbershop.config import DATABASE_URL, DB_ECHO

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Engine = connection to the database
engine = create_engine(
    DATABASE_URL,
    echo=DB_ECHO,
    connect_args=connect_args,  # required for SQLite + FastAPI
)


def init_db(bind=None):
    from barbershop import models  # noqa: F401 - registers the tables

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables ready")


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
