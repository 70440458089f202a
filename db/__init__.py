"""
Persistence package: record declarations, statement builder and the façade.
"""

from db.fields import EXCLUDED, Column, Record
from db.persistence import Database, Outcome
from db.session import get_database, init_db

__all__ = ["Column", "EXCLUDED", "Record", "Database", "Outcome", "get_database", "init_db"]
