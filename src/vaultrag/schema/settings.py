"""
Engine settings.

Every model here is frozen: a settings change means building a new value
(``model_copy(update=...)``) and handing it to ``RAGEngine.configure``.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import ApiProvider


class RAGOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    chunk_size: int = Field(default=500, gt=0)  # tiktoken tokens per chunk
    batch_size: int = Field(default=32, gt=0)  # chunks per embedding request
    exclude_patterns: List[str] = Field(default_factory=list)
    include_patterns: List[str] = Field(default_factory=list)
    min_similarity: float = 0.0
    limit: int = Field(default=10, gt=0)


class ProviderOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    base_url: Optional[str] = None


class RAGSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    embedding_model_id: str = ""
    embedding_model_provider: Optional[ApiProvider] = None
    rag_options: RAGOptions = Field(default_factory=RAGOptions)

    openai: ProviderOptions = Field(default_factory=ProviderOptions)
    openai_compatible: ProviderOptions = Field(default_factory=ProviderOptions)
    ollama: ProviderOptions = Field(
        default_factory=lambda: ProviderOptions(base_url="http://localhost:11434")
    )

    @property
    def has_embedding_model(self) -> bool:
        return bool(self.embedding_model_id and self.embedding_model_id.strip())

    def provider_options(self, provider: ApiProvider) -> ProviderOptions:
        if provider == ApiProvider.OPENAI:
            return self.openai
        if provider == ApiProvider.OPENAI_COMPATIBLE:
            return self.openai_compatible
        if provider == ApiProvider.OLLAMA:
            return self.ollama
        return ProviderOptions()


class IndexOptions(BaseModel):
    """Per-call options for an index update. ``reindex_all`` has no default."""
    model_config = ConfigDict(frozen=True)

    chunk_size: int = Field(gt=0)
    batch_size: int = Field(gt=0)
    exclude_patterns: List[str] = Field(default_factory=list)
    include_patterns: List[str] = Field(default_factory=list)
    reindex_all: bool

    @classmethod
    def from_rag_options(cls, rag_options: RAGOptions, reindex_all: bool) -> "IndexOptions":
        return cls(
            chunk_size=rag_options.chunk_size,
            batch_size=rag_options.batch_size,
            exclude_patterns=list(rag_options.exclude_patterns),
            include_patterns=list(rag_options.include_patterns),
            reindex_all=reindex_all,
        )
