"""
Database base model for Meridian

This module provides the base SQLAlchemy model with common methods that other models will inherit from.
"""

from typing import Any, Dict
from sqlalchemy.orm import as_declarative, declared_attr
import sqlalchemy as sa

@as_declarative()
class Base:
    """Base class for all database models"""
    id: Any
    __name__: str

    # Generate tablename automatically based on class name
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower()

    # Common columns for all models
    created_at = sa.Column(sa.DateTime, default=sa.func.now())
    updated_at = sa.Column(sa.DateTime, default=sa.func.now(), onupdate=sa.func.now())

    def dict(self) -> Dict[str, Any]:
        """Convert model instance to dictionary"""
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}
