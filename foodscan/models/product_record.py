"""
Product Record Model
Remote storage for product records of authenticated identities.

Each identity has its own partition. The full record is kept as JSON;
the fields the persistence facade filters on are mirrored into indexed
columns.
"""

from sqlalchemy import Column, String, Boolean, DateTime, JSON

from foodscan.models.base import BaseModel


class ProductRecord(BaseModel):
    """
    Product Record Model

    One row per stored product (history entry or avoid-list entry).
    Rows are inserted and deleted, never updated.
    """
    __tablename__ = "product_records"

    # Identity partition (user id or "anonymous")
    partition = Column(String(255), nullable=False, index=True)

    # Filterable fields, mirrored from data
    barcode = Column(String(100), nullable=True, index=True)
    avoided = Column(Boolean, default=False, nullable=False, index=True)
    source = Column(String(50), nullable=True)

    # Creation time from the record, used for newest-first ordering
    scan_date = Column(DateTime(timezone=True), nullable=True, index=True)

    # Complete record as serialized by the facade
    data = Column(JSON, nullable=False)

    def __repr__(self):
        return f"<ProductRecord(id={self.id}, partition='{self.partition}', barcode={self.barcode})>"
