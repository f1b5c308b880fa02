"""Infrastructure layer — SQLite persistence and the Community repository.

This layer depends on stdlib, SQLAlchemy, and the domain layer.
It must never import from services, commands, or output.
"""
