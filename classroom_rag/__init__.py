"""
Classroom RAG backend.

Retrieval-augmented question answering over per-group document corpora with
cancellable, token-streamed generation.
"""

__version__ = "0.1.0"
