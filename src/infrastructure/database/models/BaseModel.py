from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.ext.asyncio import AsyncAttrs
from datetime import datetime, UTC


def get_datetime_UTC() -> datetime:
    """Get current UTC datetime (naive, the storage format of every timestamp column)"""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_UTC(date: datetime) -> datetime:
    """Normalize an aware or naive-UTC datetime to the storage format"""
    if date.tzinfo is None:
        return date
    return date.astimezone(UTC).replace(tzinfo=None)


class BaseModel(AsyncAttrs, DeclarativeBase):
    """Base class for inheritance new models"""

    repr_cols_num = 1
    repr_cols = tuple()

    def __repr__(self):
        """Relationships are not used in repr() because may lead to unexpected lazy loads"""
        cols = []
        for idx, col in enumerate(self.__table__.columns.keys()):
            if col in self.repr_cols or idx < self.repr_cols_num:
                cols.append(f"{col}={getattr(self, col)}")

        return f"<{self.__class__.__name__} {', '.join(cols)}>"
