from sqlmodel import SQLModel, Session, create_engine
from videolens.core.config import settings

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

def init_db():
    """create tables for all registered models"""
    # models must be imported so they register on the metadata
    from videolens import models  # noqa: F401
    SQLModel.metadata.create_all(engine)

def get_session():
    with Session(engine) as session:
        yield session
