"""
RAG Engine
Owns the active embedding model and drives indexing, search and deletion
through the VectorManager.

Every public coroutine captures the model (and store) at call start, so a
concurrent configure() never switches models under an in-flight call. No
locks are taken; the store provides whatever isolation it offers.
"""
from typing import Callable, List, Optional, Union

from vaultrag.core.exceptions import (
    ModelInitializationError,
    NoModelConfiguredError,
    StoreOperationError,
)
from vaultrag.core.logging import get_logger
from vaultrag.schema import (
    IndexingState,
    IndexOptions,
    IndexProgress,
    IndexProgressCallback,
    IndexStatistics,
    QueryingDoneState,
    QueryingState,
    QueryProgressCallback,
    QueryResult,
    QueryScope,
    RAGSettings,
    SearchOptions,
    Workspace,
)
from vaultrag.store.vector_manager import VectorManager
from vaultrag.utils.embeddings import (
    DYNAMIC_DIMENSION_PROVIDERS,
    EmbeddingModel,
    get_embedding_model,
)
from vaultrag.utils.glob_utils import iter_workspace_paths
from vaultrag.utils.vault import Vault, VaultFile

logger = get_logger(__name__)

DIMENSION_PROBE_TEXT = "hello world"

ModelFactory = Callable[[RAGSettings], EmbeddingModel]


class RAGEngine:
    """
    Indexing and query engine for one vault.

    With no embedding model configured the engine stays usable but every
    operation that needs a model raises NoModelConfiguredError.
    """

    def __init__(
        self,
        vault: Vault,
        settings: RAGSettings,
        vector_manager: VectorManager,
        model_factory: ModelFactory = get_embedding_model,
    ):
        self.vault = vault
        self._vector_manager: Optional[VectorManager] = vector_manager
        self._model_factory = model_factory
        self._settings = settings
        self._embedding_model: Optional[EmbeddingModel] = None
        self.configure(settings)

    @property
    def settings(self) -> RAGSettings:
        return self._settings

    @property
    def embedding_model(self) -> Optional[EmbeddingModel]:
        return self._embedding_model

    @property
    def has_embedding_model(self) -> bool:
        return self._embedding_model is not None

    # ------------------------------------------------------------------
    # MODEL LIFECYCLE
    # ------------------------------------------------------------------

    def configure(self, settings: RAGSettings) -> None:
        """
        Replace the settings and re-resolve the embedding model.

        Never raises: a blank model id or a model that fails to load leaves
        the engine without a model.
        """
        self._settings = settings

        if not settings.has_embedding_model:
            self._embedding_model = None
            logger.info("embedding_model_cleared")
            return

        try:
            self._embedding_model = self._model_factory(settings)
        except Exception as e:
            logger.warning(
                "embedding_model_initialization_failed",
                model=settings.embedding_model_id,
                provider=getattr(settings.embedding_model_provider, "value", None),
                error=str(e),
            )
            self._embedding_model = None
            return

        logger.info(
            "embedding_model_configured",
            model=self._embedding_model.identity,
            dimension=self._embedding_model.dimension,
        )

    def cleanup(self) -> None:
        """Release the model and store references. Safe to call repeatedly."""
        self._embedding_model = None
        self._vector_manager = None

    def _require_model(self) -> EmbeddingModel:
        if self._embedding_model is None:
            raise NoModelConfiguredError()
        return self._embedding_model

    def _require_store(self) -> VectorManager:
        if self._vector_manager is None:
            raise StoreOperationError("Vector store has been released")
        return self._vector_manager

    async def ensure_dimension(self, model: Optional[EmbeddingModel] = None) -> int:
        """
        Make sure the model's dimension is known, probing it once if needed.

        Only dynamic-dimension providers start at 0. Two concurrent callers
        may both probe; they write the same value.
        """
        model = model or self._require_model()
        if not model.dimension_known and model.provider in DYNAMIC_DIMENSION_PROVIDERS:
            probe = await model.get_embedding(DIMENSION_PROBE_TEXT)
            if not probe:
                raise ModelInitializationError(
                    "Embedding probe returned an empty vector",
                    provider=model.provider.value,
                    model_id=model.model_id,
                )
            model.dimension = len(probe)
            logger.info("embedding_dimension_discovered", model=model.identity, dimension=model.dimension)
        return model.dimension

    # ------------------------------------------------------------------
    # INDEX UPDATES
    # ------------------------------------------------------------------

    async def update_vault_index(
        self,
        reindex_all: bool,
        on_progress: QueryProgressCallback = None,
    ) -> None:
        model = self._require_model()
        store = self._require_store()
        settings = self._settings
        await self.ensure_dimension(model)

        await store.update_vault_index(
            model,
            IndexOptions.from_rag_options(settings.rag_options, reindex_all=reindex_all),
            _forward_index_progress(on_progress),
        )

    async def update_workspace_index(
        self,
        workspace: Workspace,
        reindex_all: bool,
        on_progress: QueryProgressCallback = None,
    ) -> None:
        model = self._require_model()
        store = self._require_store()
        settings = self._settings
        await self.ensure_dimension(model)

        await store.update_workspace_index(
            model,
            workspace,
            IndexOptions.from_rag_options(settings.rag_options, reindex_all=reindex_all),
            _forward_index_progress(on_progress),
        )

    async def update_file_index(self, file: VaultFile) -> None:
        """Re-embed one note without scanning the rest of the vault."""
        model = self._require_model()
        store = self._require_store()
        rag_options = self._settings.rag_options
        await self.ensure_dimension(model)

        await store.update_file_vector_index(model, rag_options.chunk_size, rag_options.batch_size, file)

    async def delete_file_index(self, file: Union[VaultFile, str]) -> None:
        model = self._require_model()
        store = self._require_store()
        await self.ensure_dimension(model)

        await store.delete_file_vector_index(model, file)

    # ------------------------------------------------------------------
    # QUERY
    # ------------------------------------------------------------------

    async def process_query(
        self,
        query: str,
        scope: Optional[QueryScope] = None,
        limit: Optional[int] = None,
        on_progress: QueryProgressCallback = None,
    ) -> List[QueryResult]:
        """
        Embed ``query`` and return the most similar chunks, best first.

        The index is searched as it is; bringing it up to date beforehand is
        the caller's job.
        """
        model = self._require_model()
        store = self._require_store()
        rag_options = self._settings.rag_options
        await self.ensure_dimension(model)

        query_embedding = await model.get_embedding(query)
        if on_progress is not None:
            on_progress(QueryingState())

        query_result = await store.perform_similarity_search(
            query_embedding,
            model,
            SearchOptions(
                min_similarity=rag_options.min_similarity,
                limit=limit if limit is not None else rag_options.limit,
                scope=scope,
            ),
        )

        if on_progress is not None:
            on_progress(QueryingDoneState(query_result=query_result))
        return query_result

    async def get_embedding(self, text: str) -> List[float]:
        model = self._require_model()
        return await model.get_embedding(text)

    # ------------------------------------------------------------------
    # STATISTICS
    # ------------------------------------------------------------------

    async def get_workspace_statistics(self, workspace: Optional[Workspace] = None) -> IndexStatistics:
        model = self._require_model()
        store = self._require_store()
        await self.ensure_dimension(model)
        return await store.get_workspace_statistics(model, workspace)

    async def get_vault_statistics(self) -> IndexStatistics:
        model = self._require_model()
        store = self._require_store()
        await self.ensure_dimension(model)
        return await store.get_vault_statistics(model)

    # ------------------------------------------------------------------
    # DELETION
    # ------------------------------------------------------------------

    async def clear_workspace_index(self, workspace: Optional[Workspace] = None) -> None:
        """
        Delete the active model's vectors, for the whole vault or one workspace.

        Vectors written by other embedding models are never touched.
        """
        model = self._require_model()
        store = self._require_store()
        await self.ensure_dimension(model)

        if workspace is None:
            await store.clear_all_vectors(model)
            logger.info("index_cleared", model=model.identity)
            return

        files = self._resolve_workspace_files(workspace)
        if not files:
            logger.info("workspace_resolved_empty", workspace=workspace.name)
            return

        await store.delete_vectors_for_files(files, model)
        logger.info("workspace_index_cleared", workspace=workspace.name, model=model.identity, files=len(files))

    def _resolve_workspace_files(self, workspace: Workspace) -> List[str]:
        # Resolved fresh on every call; notes move and get retagged
        return list(iter_workspace_paths(workspace, self.vault))


def _forward_index_progress(on_progress: QueryProgressCallback) -> IndexProgressCallback:
    if on_progress is None:
        return None

    def forward(index_progress: IndexProgress) -> None:
        on_progress(IndexingState(index_progress=index_progress))

    return forward
