"""Pydantic domain models and wire schemas."""
