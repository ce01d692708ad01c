from .base import UUIDMixin, TimestampMixin
from .enums import ApiProvider, WorkspaceItemType
from .settings import RAGOptions, ProviderOptions, RAGSettings, IndexOptions
from .workspace import Workspace, WorkspaceItem
from .vectors import (
    VectorRecord, ChunkMetadata, QueryResult, QueryScope, SearchOptions, IndexStatistics
)
from .progress import (
    IndexProgress, IndexingState, QueryingState, QueryingDoneState, QueryProgressState,
    IndexProgressCallback, QueryProgressCallback
)

__all__ = [
    "UUIDMixin", "TimestampMixin",
    "ApiProvider", "WorkspaceItemType",
    "RAGOptions", "ProviderOptions", "RAGSettings", "IndexOptions",
    "Workspace", "WorkspaceItem",
    "VectorRecord", "ChunkMetadata", "QueryResult", "QueryScope", "SearchOptions", "IndexStatistics",
    "IndexProgress", "IndexingState", "QueryingState", "QueryingDoneState", "QueryProgressState",
    "IndexProgressCallback", "QueryProgressCallback",
]
