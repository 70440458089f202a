"""
FastAPI dependency injection for the routes FastAPI serves itself.
Resources behind the dispatcher get the database from db.session directly.
"""

from typing import Annotated

from fastapi import Depends

from core.config import SettingsDep
from db.persistence import Database
from db.session import get_database

DatabaseDep = Annotated[Database, Depends(get_database)]

__all__ = ["DatabaseDep", "SettingsDep"]
