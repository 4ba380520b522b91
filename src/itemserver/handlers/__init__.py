"""
=============================================================================
HANDLERS
=============================================================================

A handler takes an HTTPRequest and returns an HTTPResponse:

    Request                    Handler                    Response
    GET /api/v1/items/2  ───►  ItemHandlers.get_item ───► 200 {"id":2,...}

All item handlers share one ItemStore, held by an ItemHandlers instance.

=============================================================================
"""

from .items import ItemHandlers, COLLECTION, ITEM_PREFIX

__all__ = ["ItemHandlers", "COLLECTION", "ITEM_PREFIX"]
