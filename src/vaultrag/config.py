from typing import Optional

from pydantic_settings import BaseSettings

from vaultrag.schema.enums import ApiProvider
from vaultrag.schema.settings import ProviderOptions, RAGOptions, RAGSettings


class Settings(BaseSettings):
    app_name: str = "vaultrag"

    # Only the pgvector store needs a database; in-memory sessions run without one
    database_url: str = ""

    # Generic environment (debug/prod)
    APP_ENV: str = "local"  # or "production"
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # Embedding model selection. Blank model id = no embedding model.
    embedding_model_id: str = ""
    embedding_model_provider: Optional[ApiProvider] = None

    # Provider connections
    openai_api_key: Optional[str] = None
    ollama_base_url: str = "http://localhost:11434"
    openai_compatible_base_url: Optional[str] = None
    openai_compatible_api_key: Optional[str] = None

    # RAG defaults
    chunk_size: int = 500
    batch_size: int = 32
    min_similarity: float = 0.0
    limit: int = 10

    class Config:
        env_file = ".env"
        extra = "ignore"

    def to_rag_settings(self, **overrides) -> RAGSettings:
        """Build the immutable engine settings from the environment, applying overrides."""
        rag_settings = RAGSettings(
            embedding_model_id=self.embedding_model_id,
            embedding_model_provider=self.embedding_model_provider,
            rag_options=RAGOptions(
                chunk_size=self.chunk_size,
                batch_size=self.batch_size,
                min_similarity=self.min_similarity,
                limit=self.limit,
            ),
            openai=ProviderOptions(api_key=self.openai_api_key),
            openai_compatible=ProviderOptions(
                api_key=self.openai_compatible_api_key,
                base_url=self.openai_compatible_base_url,
            ),
            ollama=ProviderOptions(base_url=self.ollama_base_url),
        )
        if overrides:
            rag_settings = rag_settings.model_copy(update=overrides)
        return rag_settings


settings = Settings()
