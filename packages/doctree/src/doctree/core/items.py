"""External representations returned to API callers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import NotRequired, TypedDict

from doctree.core.paths import decode_path, join_path
from doctree.core.types import ExternalPath, NodeType, TreeNode


# Functional form: "__typename" would be name-mangled in a class body
TreeItemDict = TypedDict(
    "TreeItemDict",
    {
        "__typename": str,
        "id": str,
        "depth": int,
        "type": str,
        "folderPath": str,
        "path": str,
        "name": str,
        "title": str,
        "createdAt": str,
        "updatedAt": str,
        "childrenCount": NotRequired[int],
    },
)


class OperationResultDict(TypedDict):
    """Dictionary representation of a mutation outcome."""

    succeeded: bool
    message: str
    errorCode: NotRequired[str]


@dataclass(frozen=True)
class TreeItem:
    """A node shaped for API consumers, with paths in external form."""

    id: str
    depth: int
    type: NodeType
    folder_path: ExternalPath
    path: ExternalPath
    name: str
    title: str
    created_at: datetime
    updated_at: datetime
    children_count: int | None = None

    @classmethod
    def from_node(cls, node: TreeNode, children_count: int | None = None) -> TreeItem:
        return cls(
            id=node.id,
            depth=node.depth,
            type=node.type,
            folder_path=decode_path(node.folder_path),
            path=decode_path(join_path(node.folder_path, node.file_name)),
            name=node.file_name,
            title=node.title,
            created_at=node.created_at,
            updated_at=node.updated_at,
            children_count=children_count,
        )

    @property
    def typename(self) -> str:
        match self.type:
            case NodeType.FOLDER:
                return "TreeItemFolder"
            case NodeType.PAGE:
                return "TreeItemPage"
            case NodeType.ASSET:
                return "TreeItemAsset"

    def to_dict(self) -> TreeItemDict:
        """Convert to dictionary for JSON serialization."""
        result: TreeItemDict = {
            "__typename": self.typename,
            "id": self.id,
            "depth": self.depth,
            "type": self.type.value,
            "folderPath": self.folder_path,
            "path": self.path,
            "name": self.name,
            "title": self.title,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        if self.type is NodeType.FOLDER and self.children_count is not None:
            result["childrenCount"] = self.children_count
        return result


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a mutation."""

    succeeded: bool
    message: str
    error_code: str | None = None

    @classmethod
    def success(cls, message: str) -> OperationResult:
        return cls(succeeded=True, message=message)

    @classmethod
    def failure(cls, error_code: str, message: str) -> OperationResult:
        return cls(succeeded=False, message=message, error_code=error_code)

    def to_dict(self) -> OperationResultDict:
        """Convert to dictionary for JSON serialization."""
        result: OperationResultDict = {"succeeded": self.succeeded, "message": self.message}
        if self.error_code is not None:
            result["errorCode"] = self.error_code
        return result
