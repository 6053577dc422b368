"""
Database Models

Feature models live in their feature packages; import them from there.
"""

from stravhat.models.base import Base

__all__ = ["Base"]
