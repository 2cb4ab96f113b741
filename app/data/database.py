# app/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.utils.settings import DATABASE_URL

Base = declarative_base()


def make_engine(url: str = DATABASE_URL):
    #postgres:// -> postgresql:// (SQLAlchemy tego wymaga)
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine) -> None:
    # import zeby model byl zarejestrowany w Base.metadata
    from app.data.models.partition import PartitionModel  # noqa: F401

    Base.metadata.create_all(bind=engine)
