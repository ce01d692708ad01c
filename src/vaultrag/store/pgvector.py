"""
PostgreSQL + pgvector repository.

Vectors of every model share the ``embeddings`` table; rows are filtered on
``model`` and ``dimension`` before any distance is computed.
"""
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional

from sqlalchemy import case, func, or_, true
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, delete, select

from vaultrag.core.exceptions import StoreOperationError
from vaultrag.core.logging import get_logger
from vaultrag.schema import IndexStatistics, QueryResult, QueryScope, SearchOptions, VectorRecord
from vaultrag.store.base import VectorRepository, check_dimension, check_indexed_dimensions
from vaultrag.utils.db import get_engine
from vaultrag.utils.embeddings import EmbeddingModel
from vaultrag.utils.glob_utils import normalize_folder

logger = get_logger(__name__)


class PgVectorRepository(VectorRepository):
    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or get_engine()

    @contextmanager
    def _session(self, operation: str):
        try:
            with Session(self.engine) as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("vector_store_operation_failed", operation=operation, error=str(e))
            raise StoreOperationError(f"{operation} failed: {e}") from e

    async def get_indexed_file_paths(self, model: EmbeddingModel) -> List[str]:
        with self._session("get_indexed_file_paths") as session:
            paths = session.exec(
                select(VectorRecord.path)
                .where(VectorRecord.model == model.identity)
                .distinct()
            ).all()
        return sorted(paths)

    async def get_file_hashes(self, model: EmbeddingModel) -> Dict[str, str]:
        with self._session("get_file_hashes") as session:
            rows = session.exec(
                select(VectorRecord.path, VectorRecord.file_hash)
                .where(VectorRecord.model == model.identity)
                .where(VectorRecord.dimension == model.dimension)
                .distinct()
            ).all()
        return {path: file_hash for path, file_hash in rows}

    async def get_indexed_dimensions(self, model: EmbeddingModel) -> List[int]:
        with self._session("get_indexed_dimensions") as session:
            dimensions = session.exec(
                select(VectorRecord.dimension)
                .where(VectorRecord.model == model.identity)
                .distinct()
            ).all()
        return sorted(dimensions)

    async def insert_vectors(self, records: List[VectorRecord], model: EmbeddingModel) -> None:
        for record in records:
            if record.model != model.identity:
                raise StoreOperationError(
                    f"Record for model '{record.model}' inserted as '{model.identity}'"
                )
            check_dimension(record.embedding, model)

        with self._session("insert_vectors") as session:
            session.add_all(records)
            session.commit()

    async def delete_vectors_for_file(self, path: str, model: EmbeddingModel) -> None:
        await self.delete_vectors_for_multiple_files([path], model)

    async def delete_vectors_for_multiple_files(self, paths: Iterable[str], model: EmbeddingModel) -> None:
        targets = sorted(set(paths))
        if not targets:
            return
        with self._session("delete_vectors_for_multiple_files") as session:
            session.exec(
                delete(VectorRecord).where(
                    VectorRecord.model == model.identity,
                    VectorRecord.path.in_(targets),
                )
            )
            session.commit()

    async def clear_all_vectors(self, model: EmbeddingModel) -> None:
        with self._session("clear_all_vectors") as session:
            session.exec(delete(VectorRecord).where(VectorRecord.model == model.identity))
            session.commit()
        logger.info("vectors_cleared", model=model.identity)

    def _scope_condition(self, scope: Optional[QueryScope]):
        if scope is None:
            return None
        conditions = []
        if scope.files:
            conditions.append(VectorRecord.path.in_(scope.files))
        for folder in scope.folders:
            folder = normalize_folder(folder)
            if folder == "/":
                conditions.append(true())
            else:
                conditions.append(VectorRecord.path.startswith(folder + "/", autoescape=True))
        if not conditions:
            return None
        return or_(*conditions)

    async def perform_similarity_search(
        self,
        query_vector: List[float],
        model: EmbeddingModel,
        options: SearchOptions,
    ) -> List[QueryResult]:
        check_dimension(query_vector, model)
        check_indexed_dimensions(await self.get_indexed_dimensions(model), model)

        distance = VectorRecord.embedding.cosine_distance(query_vector)
        similarity = 1 - distance
        # CASE keeps the distance off rows of another dimension
        on_dimension = case((VectorRecord.dimension == model.dimension, similarity), else_=None)

        statement = (
            select(VectorRecord, similarity.label("similarity"))
            .where(VectorRecord.model == model.identity)
            .where(VectorRecord.dimension == model.dimension)
            .where(on_dimension > options.min_similarity)
        )
        scope_condition = self._scope_condition(options.scope)
        if scope_condition is not None:
            statement = statement.where(scope_condition)
        statement = statement.order_by(distance).limit(options.limit)

        with self._session("perform_similarity_search") as session:
            rows = session.exec(statement).all()
            return [QueryResult.from_record(record, score) for record, score in rows]

    async def get_statistics(
        self,
        model: EmbeddingModel,
        paths: Optional[Iterable[str]] = None,
    ) -> IndexStatistics:
        statement = select(
            func.count(func.distinct(VectorRecord.path)),
            func.count(VectorRecord.id),
        ).where(VectorRecord.model == model.identity)

        if paths is not None:
            targets = sorted(set(paths))
            if not targets:
                return IndexStatistics()
            statement = statement.where(VectorRecord.path.in_(targets))

        with self._session("get_statistics") as session:
            total_files, total_chunks = session.exec(statement).one()
        return IndexStatistics(total_files=total_files, total_chunks=total_chunks)
