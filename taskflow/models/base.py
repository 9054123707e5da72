#taskflow/models/base.py
"""
Declarative base for all ORM models.

Use as Base when declaring models:
    from taskflow.models.base import Base
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
