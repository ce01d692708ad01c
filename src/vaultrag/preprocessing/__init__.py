"""
vaultrag Preprocessing Module

Text chunking for the vector index.
"""

from vaultrag.preprocessing.chunker import (
    TextChunk,
    chunk_text,
)

__all__ = [
    "TextChunk",
    "chunk_text",
]
