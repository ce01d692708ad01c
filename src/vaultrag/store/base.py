"""
Repository interface for chunk vectors.

Every method takes the embedding model whose vectors it reads or writes.
Rows belonging to any other model are never touched.
"""
from typing import Dict, Iterable, List, Optional

from vaultrag.schema import IndexStatistics, QueryResult, SearchOptions, VectorRecord
from vaultrag.core.exceptions import DimensionMismatchError
from vaultrag.utils.embeddings import EmbeddingModel


class VectorRepository:
    """Protocol for vector persistence backends."""

    async def get_indexed_file_paths(self, model: EmbeddingModel) -> List[str]:
        """Distinct file paths that have vectors for ``model``."""
        raise NotImplementedError

    async def get_file_hashes(self, model: EmbeddingModel) -> Dict[str, str]:
        """
        Map of path -> content hash recorded when the file was indexed.

        Only rows at the model's current dimension count. A file embedded at
        another width is missing from the map, so the next update re-embeds it.
        """
        raise NotImplementedError

    async def get_indexed_dimensions(self, model: EmbeddingModel) -> List[int]:
        """Distinct vector widths stored for ``model``."""
        raise NotImplementedError

    async def insert_vectors(self, records: List[VectorRecord], model: EmbeddingModel) -> None:
        raise NotImplementedError

    async def delete_vectors_for_file(self, path: str, model: EmbeddingModel) -> None:
        raise NotImplementedError

    async def delete_vectors_for_multiple_files(self, paths: Iterable[str], model: EmbeddingModel) -> None:
        """Delete every vector of ``paths``. Duplicate paths are allowed."""
        raise NotImplementedError

    async def clear_all_vectors(self, model: EmbeddingModel) -> None:
        raise NotImplementedError

    async def perform_similarity_search(
        self,
        query_vector: List[float],
        model: EmbeddingModel,
        options: SearchOptions,
    ) -> List[QueryResult]:
        """
        Chunks above ``options.min_similarity``, most similar first.

        Raises DimensionMismatchError when ``model`` has stored vectors of
        another width; the index must be rebuilt before it can be searched.
        """
        raise NotImplementedError

    async def get_statistics(
        self,
        model: EmbeddingModel,
        paths: Optional[Iterable[str]] = None,
    ) -> IndexStatistics:
        """File and chunk counts for ``model``, optionally limited to ``paths``."""
        raise NotImplementedError


def check_dimension(vector: List[float], model: EmbeddingModel) -> None:
    if len(vector) != model.dimension:
        raise DimensionMismatchError(expected=model.dimension, actual=len(vector), model=model.identity)


def check_indexed_dimensions(dimensions: Iterable[int], model: EmbeddingModel) -> None:
    for dimension in sorted(dimensions):
        if dimension != model.dimension:
            raise DimensionMismatchError(expected=model.dimension, actual=dimension, model=model.identity)
