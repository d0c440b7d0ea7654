"""
Datenbankverbindung, Session-Management und Unit of Work
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session
from farmflow.config import get_settings

settings = get_settings()

# Engine erstellen
_engine_options = {"pool_pre_ping": True}
if not settings.database_url.startswith("sqlite"):
    _engine_options.update(pool_size=10, max_overflow=20)

engine = create_engine(settings.database_url, **_engine_options)

# Session Factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Basis-Klasse für alle SQLAlchemy Models"""
    pass


def get_db():
    """
    Dependency für FastAPI - liefert eine DB-Session.
    Wird automatisch nach dem Request geschlossen.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


_UOW_DEPTH = "farmflow_uow_depth"


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Transaktionsgrenze für eine fachliche Operation.

    Der äußerste Block committet bei Erfolg und macht bei jeder Exception
    ein Rollback. Verschachtelte Blöcke schließen sich dem äußeren an, so
    dass z.B. die Abo-Generierung mehrere Bestellungen atomar anlegt.
    """
    depth = db.info.get(_UOW_DEPTH, 0)
    db.info[_UOW_DEPTH] = depth + 1
    try:
        yield db
        if depth == 0:
            db.commit()
    except Exception:
        if depth == 0:
            db.rollback()
        raise
    finally:
        db.info[_UOW_DEPTH] = depth
