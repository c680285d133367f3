"""
Database Models Module
Contains SQLAlchemy ORM models for all database tables.

All models must be imported here to be registered with SQLAlchemy
and created during Base.metadata.create_all().
"""

from foodscan.db.base import Base
from foodscan.models.base import BaseModel, generate_id
from foodscan.models.product_record import ProductRecord
from foodscan.models.error_log import ScanErrorLog

__all__ = [
    "Base",
    "BaseModel",
    "generate_id",
    "ProductRecord",
    "ScanErrorLog",
]
