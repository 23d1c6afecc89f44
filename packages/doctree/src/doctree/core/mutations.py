"""Folder mutations: create, rename and delete.

Each mutation runs in a single unit of work, so any failure rolls back every
write. Errors never escape: they are converted into a failed
OperationResult carrying the error code. The work itself is shielded from
caller cancellation so a transaction always ends in commit or rollback.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from doctree.core.cleanup import LoggingCleanup, NodeCleanup
from doctree.core.errors import (
    ERR_INVALID_PARENT,
    ERR_INVALID_PATH_NAME,
    ERR_INVALID_TITLE,
    ConflictError,
    NotFoundError,
    TreeError,
    ValidationError,
)
from doctree.core.items import OperationResult
from doctree.core.paths import is_valid_name, is_valid_title, join_path
from doctree.core.repository import TreeNodeRepository
from doctree.core.store import TreeStore
from doctree.core.types import InternalPath, NodeType, RemovedNode, TreeNode

logger = logging.getLogger(__name__)


def _validate_name_and_title(path_name: str, title: str) -> None:
    if not is_valid_name(path_name):
        raise ValidationError(ERR_INVALID_PATH_NAME, f"Invalid path name: {path_name!r}")
    if not is_valid_title(title):
        raise ValidationError(ERR_INVALID_TITLE, f"Invalid title: {title!r}")


def _log_detached_outcome(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        logger.warning("Detached folder mutation was cancelled")
        return
    error = task.exception()
    if error is None:
        logger.debug("Detached folder mutation completed")
    elif isinstance(error, TreeError):
        logger.info(f"Detached folder mutation failed: {error.code}: {error.message}")
    else:
        logger.error("Detached folder mutation crashed", exc_info=error)


async def _get_folder(repo: TreeNodeRepository, folder_id: str) -> TreeNode:
    folder = await repo.get_by_id(folder_id)
    if folder is None or folder.type is not NodeType.FOLDER:
        raise NotFoundError(message=f"Folder not found: {folder_id}")
    return folder


class FolderMutations:
    """Write-side folder operations."""

    def __init__(self, store: TreeStore, cleanup: NodeCleanup | None = None) -> None:
        """Initialize mutations.

        Args:
            store: Tree store providing units of work
            cleanup: Collaborator notified of pages and assets removed by folder deletes
        """
        self._store = store
        self._cleanup = cleanup or LoggingCleanup()
        self._pending: set[asyncio.Task[None]] = set()

    async def wait_for_pending(self) -> None:
        """Wait for mutations still running after their callers were cancelled."""
        if self._pending:
            await asyncio.wait(list(self._pending))

    async def create_folder(
        self,
        site_id: str,
        parent_id: str | None,
        path_name: str,
        title: str,
    ) -> OperationResult:
        """Create a folder under `parent_id`, or at the site root when None."""
        logger.debug(f"Creating new folder {path_name}...")
        try:
            await self._shielded(self._create_folder(site_id, parent_id, path_name, title))
        except TreeError as e:
            logger.debug(f"Failed to create folder: {e.code}: {e.message}")
            return OperationResult.failure(e.code, e.message)
        return OperationResult.success("Folder created successfully")

    async def rename_folder(self, folder_id: str, path_name: str, title: str) -> OperationResult:
        """Rename a folder and move its whole subtree to the new path."""
        try:
            await self._shielded(self._rename_folder(folder_id, path_name, title))
        except TreeError as e:
            logger.debug(f"Failed to rename folder {folder_id}: {e.code}: {e.message}")
            return OperationResult.failure(e.code, e.message)
        logger.debug(f"Renamed folder {folder_id} successfully.")
        return OperationResult.success("Folder renamed successfully")

    async def delete_folder(self, folder_id: str) -> OperationResult:
        """Delete a folder with every node below it."""
        try:
            await self._shielded(self._delete_folder(folder_id))
        except TreeError as e:
            logger.debug(f"Failed to delete folder {folder_id}: {e.code}: {e.message}")
            return OperationResult.failure(e.code, e.message)
        logger.debug(f"Deleted folder {folder_id} successfully.")
        return OperationResult.success("Folder deleted successfully")

    async def _shielded(self, work: Coroutine[Any, Any, None]) -> None:
        """Run `work` to completion even if the caller is cancelled.

        The outcome of a detached task is logged by a done callback.
        """
        task = asyncio.ensure_future(work)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            task.add_done_callback(_log_detached_outcome)
            raise

    async def _create_folder(
        self,
        site_id: str,
        parent_id: str | None,
        path_name: str,
        title: str,
    ) -> None:
        _validate_name_and_title(path_name, title)

        async with self._store.unit_of_work(write=True) as repo:
            parent_path = InternalPath("")
            if parent_id:
                parent = await repo.get_by_id(parent_id)
                if parent is None or parent.site_id != site_id:
                    raise NotFoundError(message=f"Parent folder not found: {parent_id}")
                if parent.type is not NodeType.FOLDER:
                    raise ValidationError(ERR_INVALID_PARENT, "Parent is not a folder")
                parent_path = parent.full_path

            existing = await repo.get_by_parent_and_name(site_id, parent_path, path_name)
            if existing is not None:
                raise ConflictError(message=f"Folder already exists: {path_name}")

            logger.debug(f"Creating new folder {path_name} at path /{parent_path}...")
            await repo.insert(site_id, parent_path, path_name, NodeType.FOLDER, title)

    async def _rename_folder(self, folder_id: str, path_name: str, title: str) -> None:
        _validate_name_and_title(path_name, title)

        async with self._store.unit_of_work(write=True) as repo:
            folder = await _get_folder(repo, folder_id)
            logger.debug(f"Renaming folder {folder.id} path to {path_name}...")

            if path_name != folder.file_name:
                existing = await repo.get_by_parent_and_name(
                    folder.site_id,
                    folder.folder_path,
                    path_name,
                    exclude_id=folder.id,
                )
                if existing is not None:
                    raise ConflictError(message=f"Folder already exists: {path_name}")

                old_path = folder.full_path
                new_path = join_path(folder.folder_path, path_name)
                logger.debug(f"Updating parent path of children nodes from {old_path} to {new_path} ...")
                moved = await repo.rewrite_path_prefix(folder.site_id, old_path, new_path)
                logger.debug(f"Moved {moved} descendant nodes.")

            await repo.update_title_and_name(folder.id, path_name, title)

    async def _delete_folder(self, folder_id: str) -> None:
        async with self._store.unit_of_work(write=True) as repo:
            folder = await _get_folder(repo, folder_id)
            folder_path = folder.full_path
            logger.debug(f"Deleting folder {folder.id} at path {folder_path}...")

            removed = await repo.delete_by_path_prefix(folder.site_id, folder_path)
            # No-op when the cascade already removed the folder row
            await repo.delete_by_id(folder.id)

        await self._dispatch_cleanup(folder.site_id, removed)

    async def _dispatch_cleanup(self, site_id: str, removed: list[RemovedNode]) -> None:
        folder_ids = [n.id for n in removed if n.type is NodeType.FOLDER]
        page_ids = [n.id for n in removed if n.type is NodeType.PAGE]
        asset_ids = [n.id for n in removed if n.type is NodeType.ASSET]

        if folder_ids:
            logger.debug(f"Deleted {len(folder_ids)} folders.")

        if page_ids:
            logger.debug(f"Deleting {len(page_ids)} children pages...")
            try:
                await self._cleanup.pages_deleted(site_id, page_ids)
            except Exception:
                logger.exception(f"Page cleanup failed for {len(page_ids)} pages")

        if asset_ids:
            logger.debug(f"Deleting {len(asset_ids)} children assets...")
            try:
                await self._cleanup.assets_deleted(site_id, asset_ids)
            except Exception:
                logger.exception(f"Asset cleanup failed for {len(asset_ids)} assets")
