from typing import List, Dict, Any, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import Field
from sqlalchemy import Column, Index
from sqlalchemy.dialects.postgresql import JSONB
from pgvector.sqlalchemy import Vector

from .base import UUIDMixin, TimestampMixin


# ============================================
# 1. VECTOR RECORD (one row per chunk per file)
# ============================================
class VectorRecord(UUIDMixin, TimestampMixin, table=True):
    """
    One embedded chunk of one vault file.

    Rows are keyed by (model, path). Several embedding models can share the
    table; every read and delete filters on ``model`` so they never mix.
    """
    __tablename__ = "embeddings"
    __table_args__ = (
        Index("ix_embeddings_model_path", "model", "path"),
    )

    # Source file
    path: str = Field(index=True)
    mtime: float = 0.0
    file_hash: str  # sha256 of the file content at indexing time

    # Chunk
    content: str

    # Embedding space
    model: str = Field(index=True)  # EmbeddingModel.identity
    dimension: int
    embedding: Optional[List[float]] = Field(default=None, sa_column=Column(Vector()))

    metadata_: Dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSONB))


# ============================================
# 2. QUERY RESULTS & STATISTICS (non-table)
# ============================================
class ChunkMetadata(BaseModel):
    """1-based inclusive line span of a chunk, stored as ``VectorRecord.metadata_``."""
    start_line: int
    end_line: int


class QueryResult(BaseModel):
    """A VectorRecord without its embedding, scored against a query."""
    id: Optional[UUID] = None
    path: str
    mtime: float
    file_hash: str
    content: str
    model: str
    dimension: int
    metadata: Dict[str, Any] = PydanticField(default_factory=dict)
    created_at: Optional[datetime] = None
    similarity: float

    @classmethod
    def from_record(cls, record: VectorRecord, similarity: float) -> "QueryResult":
        return cls(
            id=record.id,
            path=record.path,
            mtime=record.mtime,
            file_hash=record.file_hash,
            content=record.content,
            model=record.model,
            dimension=record.dimension,
            metadata=dict(record.metadata_ or {}),
            created_at=record.created_at,
            similarity=float(similarity),
        )


class QueryScope(BaseModel):
    """Restricts a similarity search to explicit files and/or folders."""
    files: List[str] = PydanticField(default_factory=list)
    folders: List[str] = PydanticField(default_factory=list)


class SearchOptions(BaseModel):
    min_similarity: float
    limit: int = PydanticField(ge=0)
    scope: Optional[QueryScope] = None


class IndexStatistics(BaseModel):
    total_files: int = 0
    total_chunks: int = 0
