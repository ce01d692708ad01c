"""
Progress states reported through ``on_progress`` callbacks.

These are transient: they exist only while the call that emits them runs.
"""
from typing import Callable, List, Literal, Optional, Union

from pydantic import BaseModel

from .vectors import QueryResult


class IndexProgress(BaseModel):
    completed_chunks: int
    total_chunks: int
    total_files: int


class IndexingState(BaseModel):
    type: Literal["indexing"] = "indexing"
    index_progress: IndexProgress


class QueryingState(BaseModel):
    type: Literal["querying"] = "querying"


class QueryingDoneState(BaseModel):
    type: Literal["querying-done"] = "querying-done"
    query_result: List[QueryResult]


QueryProgressState = Union[IndexingState, QueryingState, QueryingDoneState]

# Sinks must return quickly; producers call them inline.
IndexProgressCallback = Optional[Callable[[IndexProgress], None]]
QueryProgressCallback = Optional[Callable[[QueryProgressState], None]]
