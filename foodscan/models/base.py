"""
Base Model Class
Provides common fields for all database models.

Ids are opaque string tokens rather than database UUIDs: product records
reuse the id the persistence facade assigned on the client side.
"""

import uuid

from sqlalchemy import Column, DateTime, String, func

from foodscan.db.base import Base


def generate_id() -> str:
    """Collision-resistant opaque token."""
    return uuid.uuid4().hex


class BaseModel(Base):
    """
    Abstract base model with common fields for all tables.

    Provides:
    - string primary key (generated when not supplied)
    - created_at timestamp (set by the database on insert)
    - updated_at timestamp (refreshed on every update)
    """

    __abstract__ = True

    id = Column(String(64), primary_key=True, default=generate_id, nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.id})>"
