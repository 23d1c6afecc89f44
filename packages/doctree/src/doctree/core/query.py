"""Tree queries.

Builds depth-bounded descendant queries below a parent folder, optionally
with the parent's ancestor chain for breadcrumbs, and shapes the rows into
TreeItems. Arguments are validated before any storage access.
"""

import logging
from dataclasses import dataclass

from doctree.core.errors import (
    ERR_INVALID_DEPTH,
    ERR_INVALID_LIMIT,
    ERR_INVALID_OFFSET,
    ERR_INVALID_ORDER_BY,
    ERR_INVALID_TYPE,
    NotFoundError,
    ValidationError,
)
from doctree.core.items import TreeItem
from doctree.core.paths import decode_label, parse_external_path, split_path
from doctree.core.repository import OrderColumn, TreeFilter, TreeNodeRepository
from doctree.core.store import TreeStore
from doctree.core.types import LABEL_SEPARATOR, InternalPath, NodeType, TreeNode

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
MAX_LIMIT = 100
MAX_DEPTH = 10

ORDER_FIELDS: dict[str, OrderColumn] = {
    "title": "title",
    "fileName": "file_name",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
ORDER_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class TreeQuery:
    """Arguments of a tree query.

    `depth` bounds how many labels a result's path may have beyond the
    parent path; 0 and 1 both mean immediate children only. `parent_id`
    takes precedence over `parent_path`; with neither, the query starts at
    the site root.
    """

    site_id: str
    offset: int = 0
    limit: int = DEFAULT_LIMIT
    depth: int = 0
    order_by: str = "title"
    order_by_direction: str = "asc"
    parent_id: str | None = None
    parent_path: str | None = None
    types: tuple[str, ...] = ()
    include_ancestors: bool = False

    def validate(self) -> None:
        """Check argument ranges.

        Raises:
            ValidationError: On the first invalid argument
        """
        if self.offset < 0:
            raise ValidationError(ERR_INVALID_OFFSET, "Invalid Offset")
        if self.limit < 1 or self.limit > MAX_LIMIT:
            raise ValidationError(ERR_INVALID_LIMIT, "Invalid Limit")
        if self.depth < 0 or self.depth > MAX_DEPTH:
            raise ValidationError(ERR_INVALID_DEPTH, "Invalid Depth")
        if self.order_by not in ORDER_FIELDS:
            raise ValidationError(ERR_INVALID_ORDER_BY, f"Invalid Order By: {self.order_by}")
        if self.order_by_direction not in ORDER_DIRECTIONS:
            raise ValidationError(
                ERR_INVALID_ORDER_BY, f"Invalid Order Direction: {self.order_by_direction}"
            )
        self.node_types()

    def node_types(self) -> frozenset[NodeType]:
        try:
            return frozenset(NodeType(value) for value in self.types)
        except ValueError as e:
            raise ValidationError(ERR_INVALID_TYPE, f"Invalid Type: {e}") from e


def ancestor_targets(parent_path: str) -> tuple[tuple[str, str], ...]:
    """List (folder_path, file_name) of every node on the parent chain.

    For "a.b.c" this yields ("a.b", "c"), ("a", "b") and ("", "a"): each
    step drops the last label and uses it as the target name.
    """
    labels = split_path(parent_path)
    return tuple(
        (LABEL_SEPARATOR.join(labels[:-i]), decode_label(labels[-i]))
        for i in range(1, len(labels) + 1)
    )


class TreeQueries:
    """Read-side tree operations."""

    def __init__(self, store: TreeStore) -> None:
        self._store = store

    async def tree(self, query: TreeQuery) -> list[TreeItem]:
        """Fetch one page of the tree below a parent.

        Results are ordered by depth first, then by the requested field.

        Raises:
            ValidationError: If arguments are out of range
            NotFoundError: If parent_id does not exist on the site
        """
        query.validate()

        async with self._store.unit_of_work() as repo:
            parent_path = await self._resolve_parent_path(repo, query)
            tree_filter = TreeFilter(
                site_id=query.site_id,
                parent_path=parent_path,
                max_extra_labels=max(query.depth - 1, 0),
                ancestors=ancestor_targets(parent_path) if query.include_ancestors else (),
                types=query.node_types(),
                order_by=ORDER_FIELDS[query.order_by],
                descending=query.order_by_direction == "desc",
                offset=query.offset,
                limit=query.limit,
            )
            nodes = await repo.query(tree_filter)
            logger.debug(f"Tree query at /{parent_path} matched {len(nodes)} nodes")
            return await self._to_items(repo, query.site_id, nodes)

    async def folder_by_id(self, node_id: str) -> TreeItem:
        """Fetch a single folder.

        Raises:
            NotFoundError: If no folder has this id
        """
        async with self._store.unit_of_work() as repo:
            node = await repo.get_by_id(node_id)
            if node is None or node.type is not NodeType.FOLDER:
                raise NotFoundError(message=f"Folder not found: {node_id}")
            items = await self._to_items(repo, node.site_id, [node])
            return items[0]

    async def _resolve_parent_path(
        self,
        repo: TreeNodeRepository,
        query: TreeQuery,
    ) -> InternalPath:
        if query.parent_id:
            parent = await repo.get_by_id(query.parent_id)
            if parent is None or parent.site_id != query.site_id:
                raise NotFoundError(message=f"Parent not found: {query.parent_id}")
            return parent.full_path
        if query.parent_path:
            return parse_external_path(query.parent_path)
        return InternalPath("")

    async def _to_items(
        self,
        repo: TreeNodeRepository,
        site_id: str,
        nodes: list[TreeNode],
    ) -> list[TreeItem]:
        folder_paths = [node.full_path for node in nodes if node.type is NodeType.FOLDER]
        counts = await repo.count_children(site_id, folder_paths)
        return [
            TreeItem.from_node(
                node,
                counts.get(node.full_path, 0) if node.type is NodeType.FOLDER else None,
            )
            for node in nodes
        ]
