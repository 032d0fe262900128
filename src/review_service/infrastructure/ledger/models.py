"""SQLAlchemy ORM models for ledger world state."""

from sqlalchemy import Column, String, LargeBinary
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class WorldStateModel(Base):
    """Current value of every ledger key."""
    __tablename__ = "world_state"

    key = Column(String(255), primary_key=True)
    value = Column(LargeBinary, nullable=False)

    def __repr__(self):
        return f"<WorldStateModel(key={self.key}, size={len(self.value or b'')})>"
