import asyncio
import os
from typing import Dict, List, Optional

import requests
from fastembed import TextEmbedding

from vaultrag.core.exceptions import ModelInitializationError
from vaultrag.core.logging import get_logger
from vaultrag.schema import ApiProvider, RAGSettings

logger = get_logger(__name__)

# Providers whose output width is only known after the first embedding call.
DYNAMIC_DIMENSION_PROVIDERS = frozenset({ApiProvider.OLLAMA, ApiProvider.OPENAI_COMPATIBLE})

OPENAI_EMBEDDING_DIMENSIONS: Dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

OLLAMA_REQUEST_TIMEOUT = 120


class EmbeddingModel:
    """
    Base class for embedding backends.

    ``dimension`` is 0 until known. Backends of a dynamic-dimension provider
    start at 0 and are probed once by the engine; the others know their width
    at construction.
    """
    provider: ApiProvider

    def __init__(self, model_id: str, dimension: int = 0):
        self.model_id = model_id
        self.dimension = dimension

    @property
    def identity(self) -> str:
        """Key under which this model's vectors are stored."""
        return f"{self.provider.value}/{self.model_id}"

    @property
    def dimension_known(self) -> bool:
        return self.dimension > 0

    async def get_embedding(self, text: str) -> List[float]:
        """Embed a single string."""
        embeddings = await self.get_batch_embeddings([text])
        return embeddings[0]

    async def get_batch_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Embed a list of strings, preserving order."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identity!r}, dimension={self.dimension})"


class OpenAIEmbeddingModel(EmbeddingModel):
    """OpenAI embeddings API, or any server speaking the same protocol."""

    def __init__(
        self,
        model_id: str,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        provider: ApiProvider = ApiProvider.OPENAI,
    ):
        try:
            from openai import AsyncOpenAI
        except ImportError:
            raise ImportError(
                "OpenAI library not installed. "
                "Install with: pip install openai"
            )

        if provider == ApiProvider.OPENAI:
            if model_id not in OPENAI_EMBEDDING_DIMENSIONS:
                raise ValueError(f"Unknown OpenAI embedding model: {model_id}")
            dimension = OPENAI_EMBEDDING_DIMENSIONS[model_id]
            if not api_key:
                raise ValueError(
                    "OPENAI_API_KEY environment variable not set. "
                    "Please set it in your .env file."
                )
        else:
            if not base_url:
                raise ValueError("OpenAI-compatible provider requires a base URL")
            dimension = 0

        super().__init__(model_id, dimension)
        self.provider = provider
        # Self-hosted servers usually ignore the key but the client insists on one
        self.client = AsyncOpenAI(api_key=api_key or "not-needed", base_url=base_url)

        logger.info(
            "openai_embedding_model_initialized",
            provider=provider.value,
            model=model_id,
            dimension=dimension,
        )

    async def get_batch_embeddings(self, texts: List[str]) -> List[List[float]]:
        response = await self.client.embeddings.create(
            model=self.model_id,
            input=texts,
            encoding_format="float",
        )
        embeddings = [item.embedding for item in response.data]

        logger.debug(
            "openai_embedding_created",
            texts=len(texts),
            dimension=len(embeddings[0]) if embeddings else 0,
        )
        return embeddings


class OllamaEmbeddingModel(EmbeddingModel):
    """Ollama's native /api/embed endpoint."""
    provider = ApiProvider.OLLAMA

    def __init__(self, model_id: str, base_url: Optional[str]):
        super().__init__(model_id, dimension=0)
        self.base_url = (base_url or "http://localhost:11434").rstrip("/")
        logger.info("ollama_embedding_model_initialized", model=model_id, base_url=self.base_url)

    def _embed(self, texts: List[str]) -> List[List[float]]:
        response = requests.post(
            f"{self.base_url}/api/embed",
            json={"model": self.model_id, "input": texts},
            timeout=OLLAMA_REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()["embeddings"]

    async def get_batch_embeddings(self, texts: List[str]) -> List[List[float]]:
        return await asyncio.to_thread(self._embed, texts)


class FastEmbedModel(EmbeddingModel):
    """Local ONNX embeddings through FastEmbed (free, no server)."""
    provider = ApiProvider.FASTEMBED

    def __init__(self, model_id: str):
        super().__init__(model_id)
        self.embeddings = TextEmbedding(model_name=model_id)
        self.dimension = self._catalogue_dimension(model_id) or self._probe_dimension()
        logger.info("fastembed_model_initialized", model=model_id, dimension=self.dimension)

    @staticmethod
    def _catalogue_dimension(model_id: str) -> int:
        for description in TextEmbedding.list_supported_models():
            if description.get("model", "").lower() == model_id.lower():
                return int(description.get("dim") or 0)
        return 0

    def _probe_dimension(self) -> int:
        # Custom models are missing from the catalogue; embed a test string
        return len(self._embed(["test"])[0])

    def _embed(self, texts: List[str]) -> List[List[float]]:
        # FastEmbed yields numpy arrays
        return [embedding.tolist() for embedding in self.embeddings.embed(texts)]

    async def get_batch_embeddings(self, texts: List[str]) -> List[List[float]]:
        return await asyncio.to_thread(self._embed, texts)


def get_embedding_model(settings: RAGSettings) -> EmbeddingModel:
    """
    Build the embedding model selected by ``settings``.

    Raises:
        ModelInitializationError: the selection is incomplete, unsupported,
            or the backend failed to load.
    """
    model_id = (settings.embedding_model_id or "").strip()
    provider = settings.embedding_model_provider

    if not model_id:
        raise ModelInitializationError("No embedding model id configured")
    if provider is None:
        raise ModelInitializationError(
            f"No provider configured for embedding model '{model_id}'",
            model_id=model_id,
        )

    options = settings.provider_options(provider)
    try:
        if provider == ApiProvider.OPENAI:
            return OpenAIEmbeddingModel(
                model_id,
                api_key=options.api_key or os.getenv("OPENAI_API_KEY"),
                base_url=options.base_url,
            )
        if provider == ApiProvider.OPENAI_COMPATIBLE:
            return OpenAIEmbeddingModel(
                model_id,
                api_key=options.api_key,
                base_url=options.base_url,
                provider=ApiProvider.OPENAI_COMPATIBLE,
            )
        if provider == ApiProvider.OLLAMA:
            return OllamaEmbeddingModel(model_id, base_url=options.base_url)
        if provider == ApiProvider.FASTEMBED:
            return FastEmbedModel(model_id)
    except Exception as e:
        raise ModelInitializationError(
            f"Failed to initialize embedding model '{model_id}' ({provider.value}): {e}",
            provider=provider.value,
            model_id=model_id,
        ) from e

    raise ModelInitializationError(
        f"Unsupported embedding provider: {provider}",
        provider=str(provider),
        model_id=model_id,
    )
