"""
Scan Error Log Model
Stores pipeline failures for diagnostics.

Captures:
- Timestamp and severity
- Pipeline stage (lookup, ocr, persistence)
- Identity partition and barcode when known
- Full traceback and sanitized context data
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, JSON, DateTime

from foodscan.models.base import BaseModel


class ScanErrorLog(BaseModel):
    """
    Scan Error Log Model

    One row per logged provider error or persistence failure.
    """
    __tablename__ = "scan_error_logs"

    timestamp = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )

    # Error classification
    error_type = Column(String(255), nullable=False, index=True)  # e.g. "ProviderError"
    severity = Column(String(20), nullable=False, default="error")  # debug, info, warning, error, critical
    stage = Column(String(50), nullable=True, index=True)  # lookup, ocr, persistence

    # Scan context
    partition = Column(String(255), nullable=True)
    barcode = Column(String(100), nullable=True)

    # Details
    message = Column(Text, nullable=True)
    stack_trace = Column(Text, nullable=True)
    context_data = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<ScanErrorLog(type={self.error_type}, stage={self.stage})>"
