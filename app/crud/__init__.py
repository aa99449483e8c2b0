"""
CRUD operations for database models.

This layer keeps database access out of the API routes.
"""

from app.crud import profile, phone_verification

__all__ = ["profile", "phone_verification"]
