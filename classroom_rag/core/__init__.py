"""
Core domain logic.

Passage splitting, context sizing, hierarchical retrieval, generation
session registry, prompt assembly and the exception hierarchy.
"""
