"""Shared test fixtures."""

from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path

import pytest
from doctree.config import Config, DatabaseConfig, ServerConfig, SiteConfig, sqlite_url
from doctree.core.items import TreeItem
from doctree.core.mutations import FolderMutations
from doctree.core.paths import encode_path
from doctree.core.query import TreeQueries, TreeQuery
from doctree.core.store import TreeStore
from doctree.core.types import NodeType, TreeNode

SITE = "default"

AddNode = Callable[..., Awaitable[TreeNode]]
Snapshot = Callable[..., Awaitable[dict[str, TreeItem]]]


class RecordingCleanup:
    """Cleanup collaborator that records what it was handed."""

    def __init__(self) -> None:
        self.pages: list[str] = []
        self.assets: list[str] = []

    async def pages_deleted(self, site_id: str, page_ids: list[str]) -> None:
        self.pages.extend(page_ids)

    async def assets_deleted(self, site_id: str, asset_ids: list[str]) -> None:
        self.assets.extend(asset_ids)


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Create a test configuration with a SQLite database in tmp_path."""
    return Config(
        server=ServerConfig(),
        database=DatabaseConfig(url=sqlite_url(tmp_path / "tree.db")),
        site=SiteConfig(default_id=SITE),
    )


@pytest.fixture
async def store(test_config: Config) -> AsyncIterator[TreeStore]:
    """Create a store with the schema in place."""
    tree_store = TreeStore.from_config(test_config.database)
    await tree_store.create_schema()
    yield tree_store
    await tree_store.dispose()


@pytest.fixture
def cleanup() -> RecordingCleanup:
    return RecordingCleanup()


@pytest.fixture
def mutations(store: TreeStore, cleanup: RecordingCleanup) -> FolderMutations:
    return FolderMutations(store, cleanup)


@pytest.fixture
def queries(store: TreeStore) -> TreeQueries:
    return TreeQueries(store)


@pytest.fixture
def add_node(store: TreeStore) -> AddNode:
    """Insert a node directly by its external path (e.g., "a/b/c")."""

    async def _add(
        path: str,
        node_type: NodeType = NodeType.FOLDER,
        title: str | None = None,
        site_id: str = SITE,
    ) -> TreeNode:
        parent, _, name = path.rpartition("/")
        async with store.unit_of_work() as repo:
            return await repo.insert(
                site_id, encode_path(parent), name, node_type, title or name.capitalize()
            )

    return _add


@pytest.fixture
def snapshot(queries: TreeQueries) -> Snapshot:
    """Return every node of a site keyed by external path."""

    async def _snapshot(site_id: str = SITE) -> dict[str, TreeItem]:
        items = await queries.tree(TreeQuery(site_id=site_id, depth=10))
        return {item.path: item for item in items}

    return _snapshot
