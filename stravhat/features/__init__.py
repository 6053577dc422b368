"""
Feature modules for Stravhat.

Each feature is a self-contained module with:
- models.py - SQLAlchemy models
- repository.py - Data access
- schemas.py - Pydantic schemas (optional)
- sync/ - Import pipeline (optional)
"""
