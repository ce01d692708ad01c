"""
Vector Manager
Keeps the vector index of a vault in step with its notes.

Features:
- Incremental updates: only notes whose content hash changed are re-embedded
- Vault-wide, workspace-scoped and single-file updates
- Batched embedding with progress reporting
- A note's vectors are written only once all its chunks are embedded, so an
  interrupted run never leaves a half-indexed note that looks up to date
"""
import hashlib
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

from vaultrag.core.exceptions import StoreOperationError
from vaultrag.core.logging import get_logger, log_context
from vaultrag.preprocessing import TextChunk, chunk_text
from vaultrag.schema import (
    ChunkMetadata,
    IndexOptions,
    IndexProgress,
    IndexProgressCallback,
    IndexStatistics,
    QueryResult,
    SearchOptions,
    VectorRecord,
    Workspace,
)
from vaultrag.store.base import VectorRepository
from vaultrag.utils.embeddings import EmbeddingModel
from vaultrag.utils.glob_utils import iter_workspace_paths, matches_patterns
from vaultrag.utils.vault import Vault, VaultFile

logger = get_logger(__name__)


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


@dataclass
class _PendingFile:
    file: VaultFile
    file_hash: str
    chunks: List[TextChunk]
    embeddings: List[Optional[List[float]]] = field(default_factory=list)
    remaining: int = 0

    def __post_init__(self):
        self.embeddings = [None] * len(self.chunks)
        self.remaining = len(self.chunks)

    def to_records(self, model: EmbeddingModel) -> List[VectorRecord]:
        return [
            VectorRecord(
                path=self.file.path,
                mtime=self.file.mtime,
                file_hash=self.file_hash,
                content=chunk.content,
                model=model.identity,
                dimension=model.dimension,
                embedding=embedding,
                metadata_=ChunkMetadata(start_line=chunk.start_line, end_line=chunk.end_line).model_dump(),
            )
            for chunk, embedding in zip(self.chunks, self.embeddings)
        ]


class VectorManager:
    def __init__(self, vault: Vault, repository: VectorRepository):
        self.vault = vault
        self.repository = repository

    # ------------------------------------------------------------------
    # INDEX UPDATES
    # ------------------------------------------------------------------

    async def update_vault_index(
        self,
        model: EmbeddingModel,
        options: IndexOptions,
        on_progress: IndexProgressCallback = None,
    ) -> None:
        """Bring the whole vault's index up to date for ``model``."""
        candidates = self._filter_files(self.vault.get_markdown_files(), options)
        logger.info(
            "vault_index_update_started",
            model=model.identity,
            candidates=len(candidates),
            reindex_all=options.reindex_all,
        )

        if options.reindex_all:
            await self.repository.clear_all_vectors(model)
        else:
            await self._delete_stale_vectors(model, {f.path for f in candidates})

        await self._update_files(model, candidates, options, on_progress)

    async def update_workspace_index(
        self,
        model: EmbeddingModel,
        workspace: Workspace,
        options: IndexOptions,
        on_progress: IndexProgressCallback = None,
    ) -> None:
        """
        Bring the notes of ``workspace`` up to date for ``model``.

        Vectors of notes outside the workspace are left alone.
        """
        paths = dict.fromkeys(iter_workspace_paths(workspace, self.vault))
        files = [f for f in (self.vault.get_file(p) for p in paths) if f is not None]
        candidates = self._filter_files(files, options)
        logger.info(
            "workspace_index_update_started",
            model=model.identity,
            workspace=workspace.name,
            candidates=len(candidates),
            reindex_all=options.reindex_all,
        )

        await self._update_files(model, candidates, options, on_progress)

    async def update_file_vector_index(
        self,
        model: EmbeddingModel,
        chunk_size: int,
        batch_size: int,
        file: VaultFile,
    ) -> None:
        """Re-chunk and re-embed exactly one note."""
        content = self.vault.read(file)
        with log_context(model=model.identity):
            await self.repository.delete_vectors_for_file(file.path, model)
            pending = [_PendingFile(file, content_hash(content), chunk_text(content, chunk_size))]
            await self._embed_and_store(model, pending, batch_size, on_progress=None)
            logger.info("file_index_updated", file=file.path, chunks=len(pending[0].chunks))

    async def delete_file_vector_index(self, model: EmbeddingModel, file: Union[VaultFile, str]) -> None:
        path = file if isinstance(file, str) else file.path
        await self.repository.delete_vectors_for_file(path, model)
        logger.info("file_index_deleted", file=path, model=model.identity)

    async def _update_files(
        self,
        model: EmbeddingModel,
        candidates: List[VaultFile],
        options: IndexOptions,
        on_progress: IndexProgressCallback,
    ) -> None:
        with log_context(model=model.identity):
            pending = await self._get_files_to_index(model, candidates, options)
            if not pending:
                logger.info("index_up_to_date")
                self._report(on_progress, IndexProgress(completed_chunks=0, total_chunks=0, total_files=0))
                return

            # Old vectors of every file about to be re-embedded go first
            await self.repository.delete_vectors_for_multiple_files(
                [p.file.path for p in pending], model
            )
            await self._embed_and_store(model, pending, options.batch_size, on_progress)

    async def _get_files_to_index(
        self,
        model: EmbeddingModel,
        candidates: List[VaultFile],
        options: IndexOptions,
    ) -> List[_PendingFile]:
        indexed_hashes = await self.repository.get_file_hashes(model)
        indexed_paths = set(await self.repository.get_indexed_file_paths(model))

        pending = []
        for file in candidates:
            try:
                content = self.vault.read(file)
            except FileNotFoundError:
                # Moved or deleted since the listing; the next update sees it
                logger.warning("file_vanished", file=file.path)
                continue
            file_hash = content_hash(content)

            if not content.strip() and file.path not in indexed_paths:
                continue
            if not options.reindex_all and indexed_hashes.get(file.path) == file_hash:
                continue

            # An emptied note yields no chunks; its old vectors are still removed
            pending.append(_PendingFile(file, file_hash, chunk_text(content, options.chunk_size)))

        logger.info(
            "files_to_index_selected",
            candidates=len(candidates),
            selected=len(pending),
        )
        return pending

    async def _delete_stale_vectors(self, model: EmbeddingModel, live_paths: set) -> None:
        """Drop vectors of notes that were deleted or are now excluded."""
        indexed_paths = await self.repository.get_indexed_file_paths(model)
        stale = [path for path in indexed_paths if path not in live_paths]
        if stale:
            await self.repository.delete_vectors_for_multiple_files(stale, model)
            logger.info("stale_vectors_deleted", model=model.identity, files=len(stale))

    async def _embed_and_store(
        self,
        model: EmbeddingModel,
        pending: List[_PendingFile],
        batch_size: int,
        on_progress: IndexProgressCallback,
    ) -> None:
        queue: List[Tuple[_PendingFile, int]] = [
            (pending_file, index)
            for pending_file in pending
            for index in range(len(pending_file.chunks))
        ]
        total_chunks = len(queue)
        self._report(on_progress, IndexProgress(completed_chunks=0, total_chunks=total_chunks, total_files=len(pending)))

        completed = 0
        for start in range(0, total_chunks, batch_size):
            batch = queue[start:start + batch_size]
            texts = [pending_file.chunks[index].content for pending_file, index in batch]
            embeddings = await model.get_batch_embeddings(texts)
            if len(embeddings) != len(batch):
                raise StoreOperationError(
                    f"Embedding backend returned {len(embeddings)} vectors for {len(batch)} chunks"
                )

            ready: List[VectorRecord] = []
            for (pending_file, index), embedding in zip(batch, embeddings):
                pending_file.embeddings[index] = list(embedding)
                pending_file.remaining -= 1
                if pending_file.remaining == 0:
                    ready.extend(pending_file.to_records(model))

            if ready:
                await self.repository.insert_vectors(ready, model)

            completed += len(batch)
            logger.debug("embedding_batch_stored", completed=completed, total=total_chunks)
            self._report(on_progress, IndexProgress(completed_chunks=completed, total_chunks=total_chunks, total_files=len(pending)))

        logger.info("index_update_complete", files=len(pending), chunks=total_chunks)

    @staticmethod
    def _filter_files(files: Iterable[VaultFile], options: IndexOptions) -> List[VaultFile]:
        return [
            f for f in files
            if matches_patterns(f.path, options.include_patterns, options.exclude_patterns)
        ]

    @staticmethod
    def _report(on_progress: IndexProgressCallback, progress: IndexProgress) -> None:
        if on_progress is not None:
            on_progress(progress)

    # ------------------------------------------------------------------
    # DELETION
    # ------------------------------------------------------------------

    async def delete_vectors_for_files(self, paths: Iterable[str], model: EmbeddingModel) -> None:
        """Delete the vectors of ``paths`` for ``model``. Duplicates are fine."""
        await self.repository.delete_vectors_for_multiple_files(paths, model)

    async def clear_all_vectors(self, model: EmbeddingModel) -> None:
        """Delete every vector of ``model``; other models are untouched."""
        await self.repository.clear_all_vectors(model)

    # ------------------------------------------------------------------
    # SEARCH & STATISTICS
    # ------------------------------------------------------------------

    async def perform_similarity_search(
        self,
        query_vector: List[float],
        model: EmbeddingModel,
        options: SearchOptions,
    ) -> List[QueryResult]:
        return await self.repository.perform_similarity_search(query_vector, model, options)

    async def get_vault_statistics(self, model: EmbeddingModel) -> IndexStatistics:
        return await self.repository.get_statistics(model)

    async def get_workspace_statistics(
        self,
        model: EmbeddingModel,
        workspace: Optional[Workspace] = None,
    ) -> IndexStatistics:
        if workspace is None:
            return await self.get_vault_statistics(model)
        paths = set(iter_workspace_paths(workspace, self.vault))
        return await self.repository.get_statistics(model, paths)
