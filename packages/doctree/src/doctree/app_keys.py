"""Application keys for type-safe app configuration access."""

from aiohttp import web

from doctree.core.mutations import FolderMutations
from doctree.core.query import TreeQueries
from doctree.core.store import TreeStore

store_key = web.AppKey("store", TreeStore)
queries_key = web.AppKey("queries", TreeQueries)
mutations_key = web.AppKey("mutations", FolderMutations)
default_site_key = web.AppKey("default_site", str)
