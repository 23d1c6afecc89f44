"""Persistence operations on tree rows.

The repository is the only component that issues SQL. It never raises
domain errors: lookups return None or empty results and validation is the
caller's job.

Paths are matched with two primitives only: exact equality on
`folder_path`, and an escaped `LIKE 'prefix.%'` range for strict
descendants. Label counts are computed in SQL from the separator count so
no ltree-style column type is required.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal

from sqlalchemy import ColumnElement, and_, case, delete, func, literal, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.types import String

from doctree.core.paths import decode_label, label_count
from doctree.core.schema import TreeNodeRow
from doctree.core.types import LABEL_SEPARATOR, InternalPath, NodeType, RemovedNode, TreeNode

OrderColumn = Literal["title", "file_name", "created_at", "updated_at"]

_ORDER_COLUMNS: dict[str, InstrumentedAttribute] = {
    "title": TreeNodeRow.title,
    "file_name": TreeNodeRow.file_name,
    "created_at": TreeNodeRow.created_at,
    "updated_at": TreeNodeRow.updated_at,
}


@dataclass(frozen=True)
class TreeFilter:
    """Resolved, validated tree query ready for execution.

    Attributes:
        site_id: Site partition
        parent_path: Internal path of the subtree root ("" for root)
        max_extra_labels: Maximum labels a matching folder_path may have beyond parent_path
        ancestors: (folder_path, file_name) pairs that also match
        types: Node types to keep, empty for all
        order_by: Column to order by after depth
        descending: Direction for order_by
        offset: Rows to skip
        limit: Maximum rows to return
    """

    site_id: str
    parent_path: InternalPath = InternalPath("")
    max_extra_labels: int = 0
    ancestors: tuple[tuple[str, str], ...] = ()
    types: frozenset[NodeType] = field(default_factory=frozenset)
    order_by: OrderColumn = "title"
    descending: bool = False
    offset: int = 0
    limit: int = 100


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _label_count_expr(column: ColumnElement[str]) -> ColumnElement[int]:
    return case(
        (column == "", 0),
        else_=func.length(column) - func.length(func.replace(column, LABEL_SEPARATOR, "")) + 1,
    )


def _depth_expr() -> ColumnElement[int]:
    """SQL expression for a row's depth: labels in its own full path."""
    return _label_count_expr(TreeNodeRow.folder_path) + 1


def _strict_descendants(prefix: str) -> ColumnElement[bool]:
    return TreeNodeRow.folder_path.startswith(prefix + LABEL_SEPARATOR, autoescape=True)


def _to_node(row: TreeNodeRow) -> TreeNode:
    return TreeNode(
        id=row.id,
        site_id=row.site_id,
        folder_path=InternalPath(row.folder_path),
        file_name=row.file_name,
        type=NodeType(row.type),
        title=row.title,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class TreeNodeRepository:
    """Tree row persistence bound to one session (one unit of work)."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, node_id: str) -> TreeNode | None:
        stmt = (
            select(TreeNodeRow)
            .where(TreeNodeRow.id == node_id)
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _to_node(row) if row is not None else None

    async def get_by_parent_and_name(
        self,
        site_id: str,
        folder_path: str,
        file_name: str,
        *,
        exclude_id: str | None = None,
    ) -> TreeNode | None:
        """Find the sibling named `file_name` under `folder_path`.

        Args:
            site_id: Site partition
            folder_path: Internal path of the parent folder
            file_name: Node name in external form
            exclude_id: Ignore the node with this id

        Returns:
            Matching node or None
        """
        stmt = select(TreeNodeRow).where(
            TreeNodeRow.site_id == site_id,
            TreeNodeRow.folder_path == folder_path,
            TreeNodeRow.file_name == file_name,
        )
        if exclude_id is not None:
            stmt = stmt.where(TreeNodeRow.id != exclude_id)
        row = (await self._session.execute(stmt.limit(1))).scalar_one_or_none()
        return _to_node(row) if row is not None else None

    async def insert(
        self,
        site_id: str,
        folder_path: str,
        file_name: str,
        node_type: NodeType,
        title: str,
    ) -> TreeNode:
        """Insert a node and flush so constraint violations surface immediately."""
        row = TreeNodeRow(
            site_id=site_id,
            folder_path=folder_path,
            file_name=file_name,
            type=node_type.value,
            title=title,
        )
        self._session.add(row)
        await self._session.flush()
        return _to_node(row)

    async def update_title_and_name(self, node_id: str, file_name: str, title: str) -> None:
        stmt = (
            update(TreeNodeRow)
            .where(TreeNodeRow.id == node_id)
            .values(file_name=file_name, title=title, updated_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)

    async def rewrite_path_prefix(self, site_id: str, old_prefix: str, new_prefix: str) -> int:
        """Move every row under `old_prefix` to `new_prefix`.

        Direct children (folder_path equal to old_prefix) and strict
        descendants (folder_path starting with old_prefix + ".") are updated
        by two separate statements in the current transaction. Descendants
        keep their suffix labels.

        Returns:
            Number of rewritten rows
        """
        now = _utcnow()
        direct_children = (
            update(TreeNodeRow)
            .where(TreeNodeRow.site_id == site_id, TreeNodeRow.folder_path == old_prefix)
            .values(folder_path=new_prefix, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        suffix = func.substr(TreeNodeRow.folder_path, len(old_prefix) + 1, type_=String)
        descendants = (
            update(TreeNodeRow)
            .where(TreeNodeRow.site_id == site_id, _strict_descendants(old_prefix))
            .values(folder_path=literal(new_prefix, String) + suffix, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        children_result = await self._session.execute(direct_children)
        descendants_result = await self._session.execute(descendants)
        return children_result.rowcount + descendants_result.rowcount

    async def delete_by_id(self, node_id: str) -> bool:
        stmt = (
            delete(TreeNodeRow)
            .where(TreeNodeRow.id == node_id)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete_by_path_prefix(self, site_id: str, prefix: str) -> list[RemovedNode]:
        """Delete the subtree rooted at `prefix`.

        Removes the node whose own path is `prefix` together with every row
        whose folder_path equals `prefix` or lies below it.

        Returns:
            Id and type of each removed row
        """
        if not prefix:
            raise ValueError("Subtree prefix must not be empty")

        parent_path, _, label = prefix.rpartition(LABEL_SEPARATOR)
        in_subtree = and_(
            TreeNodeRow.site_id == site_id,
            or_(
                and_(
                    TreeNodeRow.folder_path == parent_path,
                    TreeNodeRow.file_name == decode_label(label),
                ),
                TreeNodeRow.folder_path == prefix,
                _strict_descendants(prefix),
            ),
        )
        removed = (
            await self._session.execute(select(TreeNodeRow.id, TreeNodeRow.type).where(in_subtree))
        ).all()
        await self._session.execute(
            delete(TreeNodeRow).where(in_subtree).execution_options(synchronize_session=False)
        )
        return [RemovedNode(id=node_id, type=NodeType(node_type)) for node_id, node_type in removed]

    async def query(self, tree_filter: TreeFilter) -> list[TreeNode]:
        """Fetch one page of nodes matching a resolved tree filter."""
        matches = [self._descendant_condition(tree_filter.parent_path, tree_filter.max_extra_labels)]
        for folder_path, file_name in tree_filter.ancestors:
            matches.append(
                and_(TreeNodeRow.folder_path == folder_path, TreeNodeRow.file_name == file_name)
            )

        stmt = select(TreeNodeRow).where(TreeNodeRow.site_id == tree_filter.site_id, or_(*matches))
        if tree_filter.types:
            stmt = stmt.where(TreeNodeRow.type.in_(sorted(t.value for t in tree_filter.types)))

        order_column = _ORDER_COLUMNS[tree_filter.order_by]
        stmt = (
            stmt.order_by(
                _depth_expr().asc(),
                order_column.desc() if tree_filter.descending else order_column.asc(),
                TreeNodeRow.id.asc(),
            )
            .offset(tree_filter.offset)
            .limit(tree_filter.limit)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_to_node(row) for row in rows]

    async def count_children(self, site_id: str, folder_paths: list[str]) -> dict[str, int]:
        """Count direct children for each folder full path in one query."""
        if not folder_paths:
            return {}
        stmt = (
            select(TreeNodeRow.folder_path, func.count())
            .where(TreeNodeRow.site_id == site_id, TreeNodeRow.folder_path.in_(folder_paths))
            .group_by(TreeNodeRow.folder_path)
        )
        counts = {path: count for path, count in (await self._session.execute(stmt)).all()}
        return {path: counts.get(path, 0) for path in folder_paths}

    @staticmethod
    def _descendant_condition(parent_path: str, max_extra_labels: int) -> ColumnElement[bool]:
        if max_extra_labels == 0:
            return TreeNodeRow.folder_path == parent_path
        if not parent_path:
            return _label_count_expr(TreeNodeRow.folder_path) <= max_extra_labels
        return or_(
            TreeNodeRow.folder_path == parent_path,
            and_(
                _strict_descendants(parent_path),
                _label_count_expr(TreeNodeRow.folder_path)
                <= label_count(parent_path) + max_extra_labels,
            ),
        )
