"""Tests for tree queries."""

from typing import cast

import pytest
from doctree.core.errors import (
    ERR_FOLDER_NOT_FOUND,
    ERR_INVALID_DEPTH,
    ERR_INVALID_LIMIT,
    ERR_INVALID_OFFSET,
    ERR_INVALID_ORDER_BY,
    ERR_INVALID_PATH_NAME,
    ERR_INVALID_TYPE,
    NotFoundError,
    ValidationError,
)
from doctree.core.query import TreeQueries, TreeQuery, ancestor_targets
from doctree.core.store import TreeStore
from doctree.core.types import NodeType


@pytest.fixture
async def abc_tree(add_node) -> dict[str, str]:
    """Create folders a, a/b, a/b/c and return their ids by path."""
    a = await add_node("a", title="A")
    b = await add_node("a/b", title="B")
    c = await add_node("a/b/c", title="C")
    return {"a": a.id, "a/b": b.id, "a/b/c": c.id}


class TestTreeQueryValidation:
    """Tests for argument validation, done before any storage access."""

    @pytest.fixture
    def offline_queries(self) -> TreeQueries:
        # Validation must fail before the store is ever touched
        return TreeQueries(cast(TreeStore, None))

    @pytest.mark.parametrize(
        ("kwargs", "code"),
        [
            ({"offset": -1}, ERR_INVALID_OFFSET),
            ({"limit": 0}, ERR_INVALID_LIMIT),
            ({"limit": 101}, ERR_INVALID_LIMIT),
            ({"depth": -1}, ERR_INVALID_DEPTH),
            ({"depth": 11}, ERR_INVALID_DEPTH),
            ({"order_by": "id"}, ERR_INVALID_ORDER_BY),
            ({"order_by_direction": "up"}, ERR_INVALID_ORDER_BY),
            ({"types": ("folder", "video")}, ERR_INVALID_TYPE),
        ],
    )
    @pytest.mark.asyncio
    async def test__out_of_range__raises_validation_error(
        self,
        offline_queries: TreeQueries,
        kwargs: dict,
        code: str,
    ) -> None:
        """Reject invalid arguments with a stable code."""
        with pytest.raises(ValidationError) as exc_info:
            await offline_queries.tree(TreeQuery(site_id="default", **kwargs))

        assert exc_info.value.code == code

    def test__boundaries__are_accepted(self) -> None:
        """Accept the edges of every range."""
        TreeQuery(site_id="default", offset=0, limit=1, depth=0).validate()
        TreeQuery(site_id="default", limit=100, depth=10, order_by="updatedAt").validate()


class TestTreeDepth:
    """Tests for depth-bounded descendant matching."""

    @pytest.mark.asyncio
    async def test__depth_one__returns_immediate_children(
        self, queries: TreeQueries, abc_tree
    ) -> None:
        """depth=1 below a returns only a/b."""
        items = await queries.tree(TreeQuery(site_id="default", parent_path="a", depth=1))

        assert [item.path for item in items] == ["a/b"]

    @pytest.mark.asyncio
    async def test__depth_two__returns_two_levels(self, queries: TreeQueries, abc_tree) -> None:
        """depth=2 below a returns a/b and a/b/c."""
        items = await queries.tree(TreeQuery(site_id="default", parent_path="a", depth=2))

        assert [item.path for item in items] == ["a/b", "a/b/c"]

    @pytest.mark.asyncio
    async def test__depth_zero__returns_immediate_children(
        self, queries: TreeQueries, abc_tree
    ) -> None:
        """depth=0 means immediate children only."""
        items = await queries.tree(TreeQuery(site_id="default", parent_path="a", depth=0))

        assert [item.path for item in items] == ["a/b"]

    @pytest.mark.asyncio
    async def test__root_default__returns_top_level(self, queries: TreeQueries, abc_tree) -> None:
        """Without a parent the query starts at the site root."""
        items = await queries.tree(TreeQuery(site_id="default"))

        assert [item.path for item in items] == ["a"]

    @pytest.mark.asyncio
    async def test__depth_bound__never_exceeded(self, queries: TreeQueries, add_node) -> None:
        """No result has more than depth labels beyond the parent."""
        path = ""
        for name in ["l1", "l2", "l3", "l4", "l5"]:
            path = f"{path}/{name}" if path else name
            await add_node(path)

        for depth in range(1, 6):
            items = await queries.tree(TreeQuery(site_id="default", parent_path="l1", depth=depth))
            assert all(item.depth - 1 <= depth for item in items)
            assert len(items) == min(depth, 4)

    @pytest.mark.asyncio
    async def test__parent_id__resolves_parent_path(self, queries: TreeQueries, abc_tree) -> None:
        """parent_id resolves to the node's own full path."""
        items = await queries.tree(TreeQuery(site_id="default", parent_id=abc_tree["a/b"]))

        assert [item.path for item in items] == ["a/b/c"]

    @pytest.mark.asyncio
    async def test__unknown_parent_id__raises_not_found(
        self, queries: TreeQueries, abc_tree
    ) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await queries.tree(TreeQuery(site_id="default", parent_id="missing"))

        assert exc_info.value.code == ERR_FOLDER_NOT_FOUND

    @pytest.mark.asyncio
    async def test__invalid_parent_path__raises_validation_error(
        self, queries: TreeQueries
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await queries.tree(TreeQuery(site_id="default", parent_path="a/<b>"))

        assert exc_info.value.code == ERR_INVALID_PATH_NAME

    @pytest.mark.asyncio
    async def test__hyphenated_names__decode_to_external_form(
        self, queries: TreeQueries, add_node
    ) -> None:
        """Paths come back with hyphens, not storage underscores."""
        await add_node("user-guide")
        await add_node("user-guide/getting-started", NodeType.PAGE)

        items = await queries.tree(TreeQuery(site_id="default", parent_path="user-guide"))

        assert items[0].path == "user-guide/getting-started"
        assert items[0].folder_path == "user-guide"
        assert items[0].name == "getting-started"


class TestTreeAncestors:
    """Tests for include_ancestors."""

    def test__ancestor_targets__walk_up_the_chain(self) -> None:
        """Each step drops the last label and uses it as the target name."""
        assert ancestor_targets("a.b_c.d") == (("a.b_c", "d"), ("a", "b-c"), ("", "a"))

    def test__ancestor_targets__root__is_empty(self) -> None:
        assert ancestor_targets("") == ()

    @pytest.mark.asyncio
    async def test__include_ancestors__adds_parent_chain(
        self, queries: TreeQueries, abc_tree, add_node
    ) -> None:
        """Include every folder along the parent chain for breadcrumbs."""
        await add_node("other")

        items = await queries.tree(
            TreeQuery(site_id="default", parent_path="a/b", include_ancestors=True)
        )

        assert [item.path for item in items] == ["a", "a/b", "a/b/c"]

    @pytest.mark.asyncio
    async def test__include_ancestors__hyphenated_chain(
        self, queries: TreeQueries, add_node
    ) -> None:
        """Ancestor names are matched in their external form."""
        await add_node("my-docs")
        await add_node("my-docs/user-guide")
        await add_node("my-docs/user-guide/intro", NodeType.PAGE)

        items = await queries.tree(
            TreeQuery(site_id="default", parent_path="my-docs/user-guide", include_ancestors=True)
        )

        assert [item.path for item in items] == [
            "my-docs",
            "my-docs/user-guide",
            "my-docs/user-guide/intro",
        ]


class TestTreeFiltering:
    """Tests for types, ordering and pagination."""

    @pytest.fixture
    async def mixed_root(self, add_node) -> None:
        await add_node("beta", NodeType.FOLDER, title="Beta")
        await add_node("alpha", NodeType.PAGE, title="Alpha")
        await add_node("gamma", NodeType.ASSET, title="Gamma")
        await add_node("delta", NodeType.PAGE, title="Delta")

    @pytest.mark.asyncio
    async def test__types__filters_by_membership(self, queries: TreeQueries, mixed_root) -> None:
        items = await queries.tree(TreeQuery(site_id="default", types=("page", "asset")))

        assert [item.name for item in items] == ["alpha", "delta", "gamma"]

    @pytest.mark.asyncio
    async def test__order_desc__reverses_title_order(
        self, queries: TreeQueries, mixed_root
    ) -> None:
        items = await queries.tree(TreeQuery(site_id="default", order_by_direction="desc"))

        assert [item.title for item in items] == ["Gamma", "Delta", "Beta", "Alpha"]

    @pytest.mark.asyncio
    async def test__order_by_file_name__sorts_by_name(
        self, queries: TreeQueries, add_node
    ) -> None:
        await add_node("zzz", title="First")
        await add_node("aaa", title="Second")

        items = await queries.tree(TreeQuery(site_id="default", order_by="fileName"))

        assert [item.name for item in items] == ["aaa", "zzz"]

    @pytest.mark.asyncio
    async def test__offset_and_limit__paginate_after_ordering(
        self, queries: TreeQueries, mixed_root
    ) -> None:
        first = await queries.tree(TreeQuery(site_id="default", limit=2))
        second = await queries.tree(TreeQuery(site_id="default", offset=2, limit=2))

        assert [item.title for item in first] == ["Alpha", "Beta"]
        assert [item.title for item in second] == ["Delta", "Gamma"]

    @pytest.mark.asyncio
    async def test__other_site__not_returned(self, queries: TreeQueries, add_node) -> None:
        await add_node("mine")
        await add_node("theirs", site_id="other")

        items = await queries.tree(TreeQuery(site_id="default"))

        assert [item.name for item in items] == ["mine"]


class TestTreeItems:
    """Tests for item shaping and folder_by_id()."""

    @pytest.mark.asyncio
    async def test__folders__carry_children_count(self, queries: TreeQueries, add_node) -> None:
        """Folders report their number of direct children; pages carry none."""
        await add_node("docs")
        await add_node("docs/one", NodeType.PAGE)
        await add_node("docs/two", NodeType.PAGE)
        await add_node("docs/sub")
        await add_node("docs/sub/deep", NodeType.PAGE)
        await add_node("readme", NodeType.PAGE)

        items = {item.path: item for item in await queries.tree(TreeQuery(site_id="default"))}

        assert items["docs"].children_count == 3
        assert items["readme"].children_count is None
        assert "childrenCount" not in items["readme"].to_dict()

    @pytest.mark.asyncio
    async def test__to_dict__dispatches_typename(self, queries: TreeQueries, add_node) -> None:
        await add_node("docs")
        await add_node("page", NodeType.PAGE)
        await add_node("logo", NodeType.ASSET)

        result = await queries.tree(TreeQuery(site_id="default"))
        items = {item.name: item.to_dict() for item in result}

        assert items["docs"]["__typename"] == "TreeItemFolder"
        assert items["docs"]["childrenCount"] == 0
        assert items["page"]["__typename"] == "TreeItemPage"
        assert items["logo"]["__typename"] == "TreeItemAsset"
        assert items["docs"]["depth"] == 1

    @pytest.mark.asyncio
    async def test__folder_by_id__returns_item(self, queries: TreeQueries, abc_tree) -> None:
        item = await queries.folder_by_id(abc_tree["a/b"])

        assert item.path == "a/b"
        assert item.folder_path == "a"
        assert item.depth == 2
        assert item.children_count == 1

    @pytest.mark.asyncio
    async def test__folder_by_id__page__raises_not_found(
        self, queries: TreeQueries, add_node
    ) -> None:
        """A page id is not a folder."""
        page = await add_node("page", NodeType.PAGE)

        with pytest.raises(NotFoundError):
            await queries.folder_by_id(page.id)

    @pytest.mark.asyncio
    async def test__folder_by_id__missing__raises_not_found(self, queries: TreeQueries) -> None:
        with pytest.raises(NotFoundError):
            await queries.folder_by_id("missing")
