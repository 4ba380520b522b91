"""
=============================================================================
ITEMSERVER
=============================================================================

A small HTTP/1.1 JSON API for CRUD over "items", held in process memory.

    GET    /                     {"message": "Welcome to the Items API! ..."}
    GET    /api/v1/items         {"items": [{"id":1,"name":"First Item","value":100}, ...]}
    POST   /api/v1/items         {"name":"Widget","value":7}  → 201 {"id":3,...}
    GET    /api/v1/items/3       → 200 {"id":3,"name":"Widget","value":7}
    PUT    /api/v1/items/3       {"value":8}                  → 200 {"id":3,...,"value":8}
    DELETE /api/v1/items/3       → 200 {"message":"Item deleted successfully."}

Failures come back as {"status_code": 404, "error": "Not Found", "message": "..."}
and every response carries Access-Control-Allow-Origin: *.

=============================================================================
PACKAGE LAYOUT
=============================================================================

    itemserver/
    ├── core/          accept loop, connection framing
    ├── http/          request parser, responses, router, path ids
    ├── middleware/    access logging
    ├── handlers/      the item endpoints
    ├── store.py       bounded in-memory item store
    ├── errors.py      API error taxonomy
    ├── routes.py      the dispatch table
    ├── config.py      ServerConfig
    └── server.py      ItemServer, wiring it all together

Standard library only at runtime.

=============================================================================
"""

__version__ = "1.0.0"

from .server import ItemServer
from .config import ServerConfig
from .store import ItemStore, Item

__all__ = ["ItemServer", "ServerConfig", "ItemStore", "Item", "__version__"]
