"""Tree store core.

Path codec, persistence, queries and folder mutations.
"""

from .items import OperationResult, TreeItem
from .mutations import FolderMutations
from .query import TreeQueries, TreeQuery
from .store import TreeStore
from .types import NodeType

__all__ = [
    "FolderMutations",
    "NodeType",
    "OperationResult",
    "TreeItem",
    "TreeQueries",
    "TreeQuery",
    "TreeStore",
]
