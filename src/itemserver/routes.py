"""
The production dispatch table.

Order matters: the exact collection routes come before the id-prefix
routes, and GET "/" is last because nothing else can shadow it.
"""

from .handlers.items import ItemHandlers, COLLECTION, ITEM_PREFIX
from .http.router import Router


def build_router(handlers: ItemHandlers) -> Router:
    """Return a Router wired to ``handlers`` in dispatch order."""
    router = Router()

    router.get(COLLECTION)(handlers.list_items)
    router.post(COLLECTION)(handlers.create_item)
    router.get(ITEM_PREFIX, prefix=True)(handlers.get_item)
    router.put(ITEM_PREFIX, prefix=True)(handlers.update_item)
    router.delete(ITEM_PREFIX, prefix=True)(handlers.delete_item)
    router.get("/")(handlers.root)

    return router
