"""ORM models package exports."""

from app.models.generation import Generation

__all__ = ["Generation"]
