from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Iterator

from .events import EventHook
from .models import ItemKind, MenuItem, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MenuStats:
    count: int
    total: Decimal
    average: Decimal
    maximum: Decimal


@dataclass(frozen=True)
class MenuChange:
    item: MenuItem
    message: str


class Menu:
    """
    Ordered collection of menu items.

    `item_added` and `item_removed` fire after the collection has changed.
    Subscribers are isolated from each other; see `EventHook`.
    """

    def __init__(self, items: Iterable[MenuItem] = ()) -> None:
        self._items: list[MenuItem] = []
        self.item_added: EventHook[MenuChange] = EventHook("item_added")
        self.item_removed: EventHook[MenuChange] = EventHook("item_removed")
        for item in items:
            self.add(item)

    def __iter__(self) -> Iterator[MenuItem]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return any(item.name == name for item in self._items)

    def add(self, item: MenuItem) -> None:
        self._items.append(item)
        self.item_added.emit(MenuChange(item, "new item arrived"))

    def remove(self, name: str) -> MenuItem | None:
        """Remove the first item called ``name``. Returns it, or None if absent."""
        for position, item in enumerate(self._items):
            if item.name == name:
                del self._items[position]
                self.item_removed.emit(MenuChange(item, "item removed from menu"))
                return item
        logger.debug("remove: no item named %r", name)
        return None

    def get(self, name: str) -> MenuItem | None:
        return next((item for item in self._items if item.name == name), None)

    def cheaper_than(self, limit: Decimal | int | str) -> Iterator[MenuItem]:
        bound = to_decimal(limit)
        for item in self._items:
            if item.price < bound:
                yield item

    def of_kind(self, kind: ItemKind) -> Iterator[MenuItem]:
        return (item for item in self._items if item.kind is kind)

    def filter(self, predicate: Callable[[MenuItem], bool]) -> list[MenuItem]:
        return [item for item in self._items if predicate(item)]

    def by_price(self, descending: bool = False) -> list[MenuItem]:
        return sorted(self._items, reverse=descending)

    def names(self) -> list[str]:
        return [item.name for item in self._items]

    def stats(self) -> MenuStats:
        if not self._items:
            zero = Decimal("0")
            return MenuStats(count=0, total=zero, average=zero, maximum=zero)

        prices = [item.price for item in self._items]
        total = sum(prices, Decimal("0"))
        return MenuStats(
            count=len(prices),
            total=total,
            average=total / len(prices),
            maximum=max(prices),
        )
