"""
=============================================================================
IN-MEMORY ITEM STORE
=============================================================================

A bounded, ordered collection of items plus a monotonically increasing id
counter. One instance is created by the server and handed to the handlers;
tests build a fresh one each.

    ItemStore(capacity=100)

        _items   [ Item(1), Item(2), Item(4) ]      insertion order
        _next_id 5                                  never decreases

    create("Widget", 7)  → Item(5), _next_id 6
    delete(2)            → [ Item(1), Item(4), Item(5) ]   gap closed
    create(...)          → Item(6)                         2 is not reused

=============================================================================
SAMPLE DATA
=============================================================================

Whenever an operation finds the store empty it first inserts two sample
items ("First Item"/100 and "Second Item"/200), drawing their ids from the
normal counter. This happens on first use and again every time the last
item is deleted:

    delete(1); delete(2)      → empty
    list()                    → [ Item(3, "First Item"), Item(4, "Second Item") ]

Pass ``auto_seed=False`` to get a store that stays empty.

=============================================================================
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, Iterator, List
import logging

from .errors import CapacityExceeded, ItemNotFound


logger = logging.getLogger(__name__)


DEFAULT_CAPACITY = 100

# Names are stored in at most 63 bytes of UTF-8.
MAX_NAME_BYTES = 63

SAMPLE_ITEMS = (
    ("First Item", 100),
    ("Second Item", 200),
)


def name_fits(name: str) -> bool:
    """True if ``name`` is non-empty and at most MAX_NAME_BYTES in UTF-8."""
    return 0 < len(name.encode("utf-8")) <= MAX_NAME_BYTES


@dataclass
class Item:
    id: int
    name: str
    value: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ItemStore:
    """
    Bounded ordered item storage.

    Not thread-safe: the server handles one request at a time.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, auto_seed: bool = True):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._auto_seed = auto_seed
        self._items: List[Item] = []
        self._next_id = 1

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def next_id(self) -> int:
        """Id the next created item will receive."""
        return self._next_id

    @property
    def is_full(self) -> bool:
        self._maybe_seed()
        return len(self._items) >= self._capacity

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(list(self._items))

    # =========================================================================
    # SEEDING
    # =========================================================================

    def seed_if_empty(self) -> bool:
        """
        Insert the sample items if the store holds nothing.

        Returns:
            True if sample items were inserted.
        """
        if self._items:
            return False

        for name, value in SAMPLE_ITEMS[:self._capacity]:
            self._append(name, value)

        logger.info(
            "Seeded empty store with %d sample items (next id %d)",
            min(len(SAMPLE_ITEMS), self._capacity),
            self._next_id,
        )
        return True

    def _maybe_seed(self) -> None:
        if self._auto_seed:
            self.seed_if_empty()

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def list(self) -> List[Item]:
        """All items in store order."""
        self._maybe_seed()
        return list(self._items)

    def find_by_id(self, item_id: int) -> Optional[Item]:
        self._maybe_seed()
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def get(self, item_id: int) -> Item:
        """Like find_by_id() but raises ItemNotFound."""
        item = self.find_by_id(item_id)
        if item is None:
            raise ItemNotFound(item_id)
        return item

    def create(self, name: str, value: int) -> Item:
        """
        Append a new item with the next id.

        Raises:
            CapacityExceeded: Store is full; the id counter is untouched.
            ValueError: ``name`` is empty or longer than MAX_NAME_BYTES.
        """
        self._maybe_seed()
        if len(self._items) >= self._capacity:
            raise CapacityExceeded(self._capacity)
        if not name_fits(name):
            raise ValueError(f"item name must be 1-{MAX_NAME_BYTES} bytes of UTF-8")

        item = self._append(name, int(value))
        logger.debug("Created item %d", item.id)
        return item

    def update(
        self,
        item_id: int,
        name: Optional[str] = None,
        value: Optional[int] = None,
    ) -> Item:
        """
        Replace the supplied fields of an item in place.

        Fields left as None are unchanged. Nothing is modified if the
        new name is out of range.

        Raises:
            ItemNotFound: No item has ``item_id``.
            ValueError: ``name`` is empty or longer than MAX_NAME_BYTES.
        """
        item = self.get(item_id)
        if name is not None and not name_fits(name):
            raise ValueError(f"item name must be 1-{MAX_NAME_BYTES} bytes of UTF-8")

        if name is not None:
            item.name = name
        if value is not None:
            item.value = int(value)
        logger.debug("Updated item %d", item_id)
        return item

    def delete(self, item_id: int) -> Item:
        """
        Remove an item; later items move up one place.

        Raises:
            ItemNotFound: No item has ``item_id``.
        """
        self._maybe_seed()
        for index, item in enumerate(self._items):
            if item.id == item_id:
                del self._items[index]
                logger.debug("Deleted item %d", item_id)
                return item
        raise ItemNotFound(item_id)

    def _append(self, name: str, value: int) -> Item:
        item = Item(id=self._next_id, name=name, value=value)
        self._items.append(item)
        self._next_id += 1
        return item
