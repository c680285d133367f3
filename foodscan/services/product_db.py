"""
Product Database Service - Persistence Facade
Dedupe-aware CRUD over the product record store for the current identity.

Key responsibilities:
- Identity assignment: the only place a product gets its id and scan_date
- Backend selection once per identity change (local vs remote store)
- Avoid-list saves, idempotent by barcode
- History queries (by id, by category, flagged-ingredient stats)
- Publishing the product list after every mutation

Callers never branch on which backend is active.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import ValidationError

from foodscan.core.constants import ANONYMOUS_PARTITION, TOPIC_PRODUCTS
from foodscan.core.exceptions import PersistenceFailure
from foodscan.models.base import generate_id
from foodscan.schemas.product import Product, ProductDraft, Verdict
from foodscan.services.events import EventBus
from foodscan.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class ProductDbService:
    """
    Persistence facade for product records.

    The local store serves the anonymous identity (and every identity when
    no remote store is configured); the remote store serves authenticated
    identities.
    """

    def __init__(
        self,
        local_store: RecordStore,
        remote_store: Optional[RecordStore] = None,
        events: Optional[EventBus] = None
    ):
        self.local_store = local_store
        self.remote_store = remote_store
        self.events = events or EventBus()
        self.partition = ANONYMOUS_PARTITION
        self.store: RecordStore = local_store
        self.last_viewed_product: Optional[Product] = None
        self._last_scan_date: Optional[datetime] = None

    def set_identity(self, user_id: Optional[str]) -> None:
        """Select partition and backend for a new identity."""
        self.partition = user_id or ANONYMOUS_PARTITION
        self.store = self.remote_store if (user_id and self.remote_store) else self.local_store
        self.last_viewed_product = None
        logger.info(f"[ProductDb] Identity '{self.partition}' using {self.store.name} store")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _next_scan_date(self) -> datetime:
        # Strictly increasing, so two saves never share a scan_date
        now = datetime.now(timezone.utc)
        if self._last_scan_date is not None and now <= self._last_scan_date:
            now = self._last_scan_date + timedelta(microseconds=1)
        self._last_scan_date = now
        return now

    async def _insert(self, draft: ProductDraft) -> Product:
        try:
            product = Product(
                **draft.model_dump(exclude={"id", "scan_date"}),
                id=generate_id(),
                scan_date=self._next_scan_date(),
            )
        except ValidationError as e:
            raise PersistenceFailure(f"Invalid product record: {e}") from e

        stored = await self.store.insert(self.partition, product.model_dump(mode="json"))
        saved = Product.model_validate(stored)
        logger.info(f"[ProductDb] Saved {saved.id} '{saved.name}' ({saved.verdict.value}) for {self.partition}")
        return saved

    async def add_product(self, draft: ProductDraft) -> Product:
        """
        Append a product to the history.

        Repeat scans of the same barcode are valid history entries and are
        never deduplicated. Raises PersistenceFailure if the store rejects
        the write.
        """
        saved = await self._insert(draft)
        await self._publish()
        return saved

    async def add_avoided_product(self, product: ProductDraft) -> Product:
        """
        Save a product to the avoid list.

        If a record with the same barcode is already on this identity's
        avoid list, that record is returned unchanged. Products without a
        barcode are always added. Avoided records always carry verdict BAD.
        """
        if product.barcode:
            existing = await self.store.query(
                self.partition, {"avoided": True, "barcode": product.barcode}
            )
            if existing:
                logger.info(f"[ProductDb] Barcode {product.barcode} already on avoid list")
                return Product.model_validate(existing[0])

        fields = product.model_dump(exclude={"id", "scan_date", "avoided", "verdict"})
        draft = ProductDraft(**fields, avoided=True, verdict=Verdict.BAD)
        saved = await self._insert(draft)
        await self._publish()
        return saved

    async def remove_product(self, product_id: str) -> bool:
        removed = await self.store.delete(self.partition, product_id)
        if removed and self.last_viewed_product and self.last_viewed_product.id == product_id:
            self.last_viewed_product = None
        await self._publish()
        return removed

    async def clear_all(self) -> int:
        removed = await self.store.clear(self.partition)
        self.last_viewed_product = None
        logger.info(f"[ProductDb] Cleared {removed} records for {self.partition}")
        await self._publish()
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_products(self) -> list[Product]:
        """Scan history (avoid-list records excluded), newest first."""
        records = await self.store.query(self.partition, {"avoided": False})
        return [Product.model_validate(r) for r in records]

    async def get_avoided_products(self) -> list[Product]:
        records = await self.store.query(self.partition, {"avoided": True})
        return [Product.model_validate(r) for r in records]

    async def get_product_by_client_side_id(self, product_id: str) -> Optional[Product]:
        records = await self.store.query(self.partition, {"id": product_id})
        return Product.model_validate(records[0]) if records else None

    async def get_products_by_category(self, category: str) -> list[Product]:
        return [p for p in await self.get_products() if category in p.categories]

    async def get_flagged_ingredients_stats(self) -> list[tuple[str, int]]:
        """How often each ingredient was flagged across the history, most frequent first."""
        counts = Counter()
        for product in await self.get_products():
            counts.update(product.flagged_ingredients)
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))

    def set_last_viewed_product(self, product: Optional[Product]) -> None:
        self.last_viewed_product = product

    async def _publish(self) -> None:
        try:
            products = await self.get_products()
        except PersistenceFailure as e:
            logger.warning(f"[ProductDb] Could not refresh product list: {e}")
            return
        self.events.publish(TOPIC_PRODUCTS, products)
