"""Secondary cleanup after a folder subtree is deleted.

Page and asset rows removed by a cascading folder delete are reported to
collaborators that own rendered content and blobs. The tree does not depend
on the outcome.
"""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class NodeCleanup(Protocol):
    """Receives ids of pages and assets removed from the tree."""

    async def pages_deleted(self, site_id: str, page_ids: list[str]) -> None: ...

    async def assets_deleted(self, site_id: str, asset_ids: list[str]) -> None: ...


class LoggingCleanup:
    """Default collaborator that only records what was removed."""

    async def pages_deleted(self, site_id: str, page_ids: list[str]) -> None:
        logger.info(f"Site {site_id}: {len(page_ids)} pages removed from tree")

    async def assets_deleted(self, site_id: str, asset_ids: list[str]) -> None:
        logger.info(f"Site {site_id}: {len(asset_ids)} assets removed from tree")
