"""
=============================================================================
ITEM RESOURCE HANDLERS
=============================================================================

    GET    /                    root          200 greeting
    GET    /api/v1/items        list_items    200 {"items": [...]}
    POST   /api/v1/items        create_item   201 item
    GET    /api/v1/items/{id}   get_item      200 item
    PUT    /api/v1/items/{id}   update_item   200 item
    DELETE /api/v1/items/{id}   delete_item   200 {"message": ...}

Each handler validates in a fixed order and answers the first failure with
the error envelope:

    create   capacity 507 → JSON 400 → fields 400 → name length 400
    update   id 400 → exists 404 → JSON 400 → name length 400
    get      id 400 → exists 404
    delete   id 400 → exists 404

Errors from the store (ItemNotFound, CapacityExceeded) and validation
failures (ClientError) are caught here and never leave the handler.

=============================================================================
"""

from typing import Any, Optional
import logging
import math

from ..errors import APIError, CapacityExceeded, ClientError, ItemNotFound
from ..http.identifiers import extract_id
from ..http.request import HTTPRequest, HTTPParseError
from ..http.response import HTTPResponse, json_response, api_error_response
from ..http.status_codes import HTTPStatus
from ..store import ItemStore, MAX_NAME_BYTES, name_fits


logger = logging.getLogger(__name__)


COLLECTION = "/api/v1/items"
ITEM_PREFIX = COLLECTION + "/"

WELCOME_MESSAGE = "Welcome to the Items API! Navigate to /api/v1/items for data."
DELETED_MESSAGE = "Item deleted successfully."

INVALID_ID = "Invalid or missing item ID in URI. Expected format: /api/v1/items/{id}"
INVALID_JSON = "Invalid JSON format in request body."
INVALID_JSON_UPDATE = "Invalid JSON format in request body for update."
INVALID_FIELDS = "Missing or invalid 'name' (string) or 'value' (number) in JSON body."
NOT_AN_OBJECT = "Request body must be a JSON object."
NAME_TOO_LONG = f"Item name provided is too long (max {MAX_NAME_BYTES} characters)."
UPDATED_NAME_TOO_LONG = f"Updated item name too long (max {MAX_NAME_BYTES} characters)."
NAME_EMPTY = "Item name must not be empty."
NOT_FOUND_FOR_UPDATE = "Item with specified ID not found for update."
NOT_FOUND_FOR_DELETE = "Item with specified ID not found for deletion."


def is_number(value: Any) -> bool:
    # bool is an int subclass, but true/false are not JSON numbers.
    # json.loads turns an overflowing literal such as 1e400 into inf.
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, int)


def _check_name(name: str, too_long_message: str) -> None:
    if name_fits(name):
        return
    if not name:
        raise ClientError(NAME_EMPTY)
    raise ClientError(too_long_message)


class ItemHandlers:
    """
    Request handlers bound to one ItemStore.

    Methods take an HTTPRequest and return an HTTPResponse, so they plug
    straight into Router.add_route().
    """

    def __init__(self, store: ItemStore):
        self.store = store

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _item_id(self, request: HTTPRequest) -> int:
        item_id = extract_id(request.path, ITEM_PREFIX)
        if item_id is None:
            raise ClientError(INVALID_ID)
        return item_id

    def _json_body(self, request: HTTPRequest, message: str) -> Any:
        try:
            body = request.json
        except HTTPParseError as e:
            logger.debug("Rejected body for %s %s: %s", request.method, request.path, e)
            raise ClientError(message)
        if body is None:
            raise ClientError(message)
        return body

    def _fail(self, request: HTTPRequest, exc: APIError) -> HTTPResponse:
        logger.debug(
            "%s %s -> %d %s",
            request.method, request.path, exc.status_code, exc.message,
        )
        return api_error_response(exc)

    # =========================================================================
    # ROUTES
    # =========================================================================

    def root(self, request: HTTPRequest) -> HTTPResponse:
        return json_response(HTTPStatus.OK, {"message": WELCOME_MESSAGE})

    def list_items(self, request: HTTPRequest) -> HTTPResponse:
        items = [item.to_dict() for item in self.store.list()]
        return json_response(HTTPStatus.OK, {"items": items})

    def get_item(self, request: HTTPRequest) -> HTTPResponse:
        try:
            item = self.store.get(self._item_id(request))
        except APIError as e:
            return self._fail(request, e)
        return json_response(HTTPStatus.OK, item.to_dict())

    def create_item(self, request: HTTPRequest) -> HTTPResponse:
        """
        Create an item from ``{"name": str, "value": number}``.

        A fractional value is truncated toward zero. Capacity is checked
        before the body is even parsed.
        """
        try:
            if self.store.is_full:
                raise CapacityExceeded(self.store.capacity)

            body = self._json_body(request, INVALID_JSON)
            name = body.get("name") if isinstance(body, dict) else None
            value = body.get("value") if isinstance(body, dict) else None
            if not isinstance(name, str) or not is_number(value):
                raise ClientError(INVALID_FIELDS)

            _check_name(name, NAME_TOO_LONG)
            item = self.store.create(name, int(value))
        except APIError as e:
            return self._fail(request, e)

        logger.info("Created item %d (%r)", item.id, item.name)
        return json_response(HTTPStatus.CREATED, item.to_dict())

    def update_item(self, request: HTTPRequest) -> HTTPResponse:
        """
        Partially update an item from a JSON object.

        ``name`` is applied only if it is a string and ``value`` only if it
        is a number; fields of any other type are ignored. An out-of-range
        name rejects the whole request without changing anything.
        """
        try:
            item_id = self._item_id(request)
            if self.store.find_by_id(item_id) is None:
                raise ItemNotFound(item_id, NOT_FOUND_FOR_UPDATE)

            body = self._json_body(request, INVALID_JSON_UPDATE)
            if not isinstance(body, dict):
                raise ClientError(NOT_AN_OBJECT)

            name: Optional[str] = body.get("name")
            if not isinstance(name, str):
                name = None
            value = body.get("value")
            value = int(value) if is_number(value) else None

            if name is not None:
                _check_name(name, UPDATED_NAME_TOO_LONG)
            item = self.store.update(item_id, name=name, value=value)
        except APIError as e:
            return self._fail(request, e)

        return json_response(HTTPStatus.OK, item.to_dict())

    def delete_item(self, request: HTTPRequest) -> HTTPResponse:
        try:
            item_id = self._item_id(request)
            try:
                self.store.delete(item_id)
            except ItemNotFound:
                raise ItemNotFound(item_id, NOT_FOUND_FOR_DELETE)
        except APIError as e:
            return self._fail(request, e)

        logger.info("Deleted item %d", item_id)
        return json_response(HTTPStatus.OK, {"message": DELETED_MESSAGE})
