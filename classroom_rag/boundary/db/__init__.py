"""Relational persistence: ORM models, CRUD singletons and connection management."""
