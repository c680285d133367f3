"""
SQLAlchemy Declarative Base
Defines the base class for all SQLAlchemy models.

All database models should inherit from the Base class defined here.
This provides ORM functionality and table creation capabilities.
"""

from sqlalchemy.orm import declarative_base

# Declarative base class for all models
# Both the remote product store (ProductRecord) and the error log
# (ScanErrorLog) register their tables here.
Base = declarative_base()
