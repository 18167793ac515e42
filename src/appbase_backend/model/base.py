import uuid
from sqlalchemy.orm import declarative_base

from appbase_backend.utils import utc_now

Base = declarative_base()
metadata = Base.metadata


def generate_uuid() -> str:
    return str(uuid.uuid4())


__all__ = ["Base", "metadata", "generate_uuid", "utc_now"]
