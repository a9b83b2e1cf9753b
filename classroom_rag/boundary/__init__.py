"""
Boundary layer.

Adapters to everything outside the process: PostgreSQL (ORM + pgvector
similarity search) and the Gemini embedding and chat-model services.
"""
