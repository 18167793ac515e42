from contextlib import contextmanager

from appbase_backend.database import get_db

@contextmanager
def db_session():
    db_generator = get_db()
    db = next(db_generator)
    try:
        yield db
    finally:
        db_generator.close()
