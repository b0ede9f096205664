from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from config.config import Config
from app.models.base import Base

# SQLite waits up to 30s on a locked database instead of failing the booking
engine = create_engine(
    Config.DATABASE_URL,
    connect_args={'check_same_thread': False, 'timeout': 30} if Config.DATABASE_URL.startswith('sqlite') else {}
)

# Rows are formatted to dicts after commit, so keep their loaded state
SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)


def init_db():
    """Create calendar, reservation and lock tables"""
    import app.models  # registers the models on Base
    Base.metadata.create_all(bind=engine)


def drop_db():
    Base.metadata.drop_all(bind=engine)


@contextmanager
def get_db():
    """One transaction: committed on success, rolled back on any exception"""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


class DatabaseManager:
    """Single-statement reads and inserts for one model, each in its own transaction"""

    def __init__(self, model_class):
        self.model_class = model_class

    def _filtered(self, db, criteria):
        query = db.query(self.model_class)
        for key, value in criteria.items():
            query = query.filter(getattr(self.model_class, key) == value)
        return query

    def create(self, **kwargs):
        with get_db() as db:
            instance = self.model_class(**kwargs)
            db.add(instance)
            db.flush()
            db.refresh(instance)
            return instance

    def get(self, id):
        with get_db() as db:
            return db.get(self.model_class, id)

    def get_by(self, **kwargs):
        """First row matching all field values, or None"""
        with get_db() as db:
            return self._filtered(db, kwargs).first()

    def exists(self, **kwargs) -> bool:
        with get_db() as db:
            return self._filtered(db, kwargs).first() is not None
