"""aiohttp server for Doctree.

Application factory and route registration.
"""

import logging

from aiohttp import web

from doctree.api.tree import create_tree_routes
from doctree.app_keys import default_site_key, mutations_key, queries_key, store_key
from doctree.config import Config
from doctree.core.cleanup import NodeCleanup
from doctree.core.mutations import FolderMutations
from doctree.core.query import TreeQueries
from doctree.core.store import TreeStore

logger = logging.getLogger(__name__)


def create_app(config: Config, *, cleanup: NodeCleanup | None = None) -> web.Application:
    """Create aiohttp application.

    The store is created here and owned by the application: the schema is
    created on startup and the engine disposed on cleanup.

    Args:
        config: Application configuration
        cleanup: Collaborator notified of pages and assets removed by folder deletes

    Returns:
        Configured aiohttp application
    """
    app = web.Application()

    store = TreeStore.from_config(config.database)

    app[store_key] = store
    app[queries_key] = TreeQueries(store)
    app[mutations_key] = FolderMutations(store, cleanup)
    app[default_site_key] = config.site.default_id

    app.router.add_routes(create_tree_routes())

    app.on_startup.append(_create_schema)
    app.on_cleanup.append(_dispose_store)

    return app


async def _create_schema(app: web.Application) -> None:
    """Create tables on application startup."""
    await app[store_key].create_schema()


async def _dispose_store(app: web.Application) -> None:
    """Release database connections on application cleanup."""
    await app[mutations_key].wait_for_pending()
    await app[store_key].dispose()


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    logger.info(f"Serving tree API on {config.server.host}:{config.server.port}")
    web.run_app(app, host=config.server.host, port=config.server.port, print=None)
