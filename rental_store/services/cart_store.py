# rental_store/services/cart_store.py
import logging
import threading
import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import TypeAdapter, ValidationError

from rental_store.core.errors import PersistenceError
from rental_store.core.kv_storage import KeyValueStorage
from rental_store.schemas.cart import (
    AddItemResult,
    CartItemDraft,
    CartLineItem,
    CartWriteResult,
)

logger = logging.getLogger(__name__)

_ITEMS = TypeAdapter(list[CartLineItem])


def _as_date(value: date | str | None) -> date | None:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


class CartStore:
    """
    Ordered, durable collection of reservation line items.

    Responsibilities:
      - keep items in insertion order (= display order)
      - assign ids on insert
      - reject a second reservation of the same car/tour for the same dates
      - write the whole list to the durable slot after every mutation
      - notice when another writer changed the slot and reload it first

    Prices are snapshots: nothing here recomputes a breakdown.
    """

    def __init__(self, storage: KeyValueStorage, key: str = "cart"):
        self.storage = storage
        self.key = key
        self._items: list[CartLineItem] = []
        self._last_written: str | None = None
        self._lock = threading.RLock()

    # ---- internal helpers ----

    def _decode(self, raw: str | None) -> list[CartLineItem]:
        if not raw:
            return []
        return _ITEMS.validate_json(raw)

    def _read_slot(self) -> str | None:
        try:
            return self.storage.get(self.key)
        except (OSError, ValueError) as e:
            logger.warning("Cart slot '%s' could not be read: %s", self.key, e)
            raise PersistenceError(self.key, str(e)) from e

    def _sync_external(self) -> None:
        """
        Reload the slot if someone else wrote to it since our last write.

        The external state wins; the pending mutation is applied on top.
        """
        try:
            raw = self._read_slot()
        except PersistenceError:
            return
        if raw == self._last_written:
            return
        try:
            self._items = self._decode(raw)
        except ValidationError as e:
            logger.warning("Ignoring unreadable external cart write: %s", e)
            return
        self._last_written = raw
        logger.warning(
            "Cart slot '%s' was changed by another writer; reloaded %d item(s)",
            self.key,
            len(self._items),
        )

    def _persist(self) -> CartWriteResult:
        try:
            payload = _ITEMS.dump_json(self._items).decode("utf-8")
            self.storage.set(self.key, payload)
        except (OSError, ValueError, TypeError) as e:
            error = PersistenceError(self.key, str(e))
            logger.warning("Cart change kept in memory only: %s", error)
            return CartWriteResult(persisted=False, error=error)

        self._last_written = payload
        return CartWriteResult()

    def _new_id(self, kind: str) -> str:
        return f"{kind}-{uuid.uuid4().hex}"

    def _find(self, item_id: str) -> int | None:
        for idx, it in enumerate(self._items):
            if it.id == item_id:
                return idx
        return None

    # ---- lifecycle ----

    def load(self) -> None:
        """
        Read the durable slot once at startup.

        A missing slot means an empty cart. An unreadable or corrupt slot
        is logged and also starts empty; it is overwritten on the next
        mutation.
        """
        with self._lock:
            try:
                raw = self._read_slot()
            except PersistenceError:
                self._items = []
                return
            try:
                self._items = self._decode(raw)
            except ValidationError as e:
                logger.warning("Cart slot '%s' is corrupt, starting empty: %s", self.key, e)
                self._items = []
                return
            self._last_written = raw
            logger.info("Loaded cart '%s' with %d item(s)", self.key, len(self._items))

    # ---- derived state ----

    @property
    def items(self) -> list[CartLineItem]:
        return list(self._items)

    @property
    def item_count(self) -> int:
        return len(self._items)

    @property
    def total_price(self) -> Decimal:
        return sum((it.breakdown.total for it in self._items), Decimal("0"))

    # ---- public operations ----

    def is_in_cart(
        self,
        car_id: str | None = None,
        tour_id: str | None = None,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
    ) -> bool:
        """
        True if an item references the same car or tour for the same
        (start_date, end_date) pair.

        Location, times, driver and add-ons are not part of the identity.
        """
        start = _as_date(start_date)
        end = _as_date(end_date)
        with self._lock:
            return any(
                ((car_id and it.car_id == car_id) or (tour_id and it.tour_id == tour_id))
                and it.start_date == start
                and it.end_date == end
                for it in self._items
            )

    def add_item(self, draft: CartItemDraft, allow_duplicate: bool = False) -> AddItemResult:
        """
        Append a reservation with a fresh id.

        Rules:
          - a duplicate (see is_in_cart) is rejected unless allow_duplicate
          - any id on the draft is replaced
        """
        with self._lock:
            self._sync_external()

            if not allow_duplicate and self.is_in_cart(
                car_id=draft.car_id,
                tour_id=draft.tour_id,
                start_date=draft.start_date,
                end_date=draft.end_date,
            ):
                logger.info(
                    "Rejected duplicate %s %s for %s..%s",
                    draft.kind,
                    draft.reference_id,
                    draft.start_date,
                    draft.end_date,
                )
                return AddItemResult(outcome="duplicate_rejected")

            data = draft.model_dump()
            data["id"] = self._new_id(draft.kind)
            item = CartLineItem.model_validate(data)
            self._items.append(item)

            write = self._persist()
            return AddItemResult(
                persisted=write.persisted,
                error=write.error,
                outcome="inserted",
                item=item,
            )

    def remove_item(self, item_id: str) -> CartWriteResult:
        """
        Remove an item by id. Unknown ids are a no-op.
        """
        with self._lock:
            self._sync_external()
            self._items = [it for it in self._items if it.id != item_id]
            return self._persist()

    def update_item(self, item_id: str, **fields: Any) -> CartWriteResult:
        """
        Shallow-merge fields into an item. Unknown ids are a no-op.

        The breakdown is not recomputed; callers changing price-affecting
        fields must pass a new `breakdown` themselves. The id never changes.

        Raises:
            pydantic.ValidationError: if the merged item is invalid.
        """
        with self._lock:
            self._sync_external()
            idx = self._find(item_id)
            if idx is None:
                return CartWriteResult()

            fields.pop("id", None)
            current = self._items[idx]
            merged = {**current.model_dump(), **fields}
            self._items[idx] = CartLineItem.model_validate(merged)
            return self._persist()

    def remove_items(self, item_ids: list[str]) -> CartWriteResult:
        """
        Remove several items in one write. Unknown ids are ignored.

        Items added since the caller read the cart stay in place.
        """
        with self._lock:
            self._sync_external()
            drop = set(item_ids)
            self._items = [it for it in self._items if it.id not in drop]
            return self._persist()

    def get_item(self, item_id: str) -> CartLineItem | None:
        with self._lock:
            idx = self._find(item_id)
            return None if idx is None else self._items[idx]

    def clear_cart(self) -> CartWriteResult:
        with self._lock:
            self._sync_external()
            self._items = []
            return self._persist()
