"""
vaultrag

Vector indexing and similarity search over a vault of Markdown notes.
"""

__version__ = "0.1.0"
