"""
Vector store

- base.py: repository interface (raw vector persistence, scoped by model)
- memory.py: in-process numpy repository
- pgvector.py: PostgreSQL + pgvector repository
- vector_manager.py: incremental index maintenance over a repository
"""

from .base import VectorRepository
from .memory import InMemoryVectorRepository
from .vector_manager import VectorManager

__all__ = [
    "VectorRepository",
    "InMemoryVectorRepository",
    "VectorManager",
]
