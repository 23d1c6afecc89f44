"""Core type definitions."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import NewType

# User-facing path (e.g., "guides/getting-started")
ExternalPath = NewType("ExternalPath", str)

# Storage label path (e.g., "guides.getting_started"), "" for root
InternalPath = NewType("InternalPath", str)

PATH_SEPARATOR = "/"
LABEL_SEPARATOR = "."


class NodeType(StrEnum):
    """Kind of a tree node."""

    FOLDER = "folder"
    PAGE = "page"
    ASSET = "asset"


@dataclass(frozen=True)
class TreeNode:
    """One persisted tree row."""

    id: str
    site_id: str
    folder_path: InternalPath
    file_name: str
    type: NodeType
    title: str
    created_at: datetime
    updated_at: datetime

    @property
    def full_path(self) -> InternalPath:
        """Internal path of the node itself."""
        label = self.file_name.replace("-", "_")
        if not self.folder_path:
            return InternalPath(label)
        return InternalPath(f"{self.folder_path}{LABEL_SEPARATOR}{label}")

    @property
    def depth(self) -> int:
        """Number of labels in the node's own full path."""
        if not self.folder_path:
            return 1
        return self.folder_path.count(LABEL_SEPARATOR) + 2


@dataclass(frozen=True)
class RemovedNode:
    """Identity of a row removed by a cascading delete."""

    id: str
    type: NodeType
