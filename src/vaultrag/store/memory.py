"""
In-process vector repository backed by a list and numpy.

Nothing is persisted. Used for tests and short-lived sessions.
"""
from typing import Dict, Iterable, List, Optional

import numpy as np

from vaultrag.core.exceptions import StoreOperationError
from vaultrag.core.logging import get_logger
from vaultrag.schema import IndexStatistics, QueryResult, QueryScope, SearchOptions, VectorRecord
from vaultrag.store.base import VectorRepository, check_dimension, check_indexed_dimensions
from vaultrag.utils.embeddings import EmbeddingModel
from vaultrag.utils.glob_utils import matches_folder

logger = get_logger(__name__)


def in_scope(path: str, scope: Optional[QueryScope]) -> bool:
    """A scope with neither files nor folders does not restrict anything."""
    if scope is None or (not scope.files and not scope.folders):
        return True
    if path in scope.files:
        return True
    return any(matches_folder(path, folder) for folder in scope.folders)


class InMemoryVectorRepository(VectorRepository):
    def __init__(self):
        self._records: List[VectorRecord] = []

    def _records_for(self, model: EmbeddingModel) -> List[VectorRecord]:
        return [r for r in self._records if r.model == model.identity]

    async def get_indexed_file_paths(self, model: EmbeddingModel) -> List[str]:
        return sorted({r.path for r in self._records_for(model)})

    async def get_file_hashes(self, model: EmbeddingModel) -> Dict[str, str]:
        return {
            r.path: r.file_hash for r in self._records_for(model)
            if r.dimension == model.dimension
        }

    async def get_indexed_dimensions(self, model: EmbeddingModel) -> List[int]:
        return sorted({r.dimension for r in self._records_for(model)})

    async def insert_vectors(self, records: List[VectorRecord], model: EmbeddingModel) -> None:
        for record in records:
            if record.model != model.identity:
                raise StoreOperationError(
                    f"Record for model '{record.model}' inserted as '{model.identity}'"
                )
            check_dimension(record.embedding, model)
        self._records.extend(records)

    async def delete_vectors_for_file(self, path: str, model: EmbeddingModel) -> None:
        await self.delete_vectors_for_multiple_files([path], model)

    async def delete_vectors_for_multiple_files(self, paths: Iterable[str], model: EmbeddingModel) -> None:
        targets = set(paths)
        before = len(self._records)
        self._records = [
            r for r in self._records
            if not (r.model == model.identity and r.path in targets)
        ]
        logger.debug("vectors_deleted", model=model.identity, files=len(targets), chunks=before - len(self._records))

    async def clear_all_vectors(self, model: EmbeddingModel) -> None:
        self._records = [r for r in self._records if r.model != model.identity]

    async def perform_similarity_search(
        self,
        query_vector: List[float],
        model: EmbeddingModel,
        options: SearchOptions,
    ) -> List[QueryResult]:
        check_dimension(query_vector, model)
        records = self._records_for(model)
        check_indexed_dimensions({r.dimension for r in records}, model)

        candidates = [r for r in records if in_scope(r.path, options.scope)]
        if not candidates:
            return []

        matrix = np.asarray([r.embedding for r in candidates], dtype=np.float64)
        query = np.asarray(query_vector, dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        similarities = np.divide(
            matrix @ query, norms, out=np.zeros(len(candidates)), where=norms > 0
        )
        similarities = np.clip(similarities, -1.0, 1.0)

        results = []
        for index in np.argsort(-similarities, kind="stable"):
            if len(results) >= options.limit:
                break
            similarity = float(similarities[index])
            if similarity <= options.min_similarity:
                break
            results.append(QueryResult.from_record(candidates[index], similarity))
        return results

    async def get_statistics(
        self,
        model: EmbeddingModel,
        paths: Optional[Iterable[str]] = None,
    ) -> IndexStatistics:
        records = self._records_for(model)
        if paths is not None:
            wanted = set(paths)
            records = [r for r in records if r.path in wanted]
        return IndexStatistics(
            total_files=len({r.path for r in records}),
            total_chunks=len(records),
        )
