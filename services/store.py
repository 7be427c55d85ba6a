"""
Record store: the persistence boundary.

A small keyed document store with save/delete/list semantics, plus the
single stock mutation entry point (deduct_stock) and independent
monotonic sequences used for order codes.

Two backends share the contract:
    InMemoryStore: development and tests
    SupabaseStore: durable; one table per collection, rows {id, data}
"""

from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Optional
import structlog

from config import settings
from exceptions import DatabaseError, ValidationError
from models.material import Material
from models.order import ProductionOrder
from models.product import Client, ProductRecipe

logger = structlog.get_logger(__name__)


MATERIALS = "materials"
PRODUCTS = "products"
CLIENTS = "clients"
SUPPLIERS = "suppliers"
ORDERS = "orders"

COLLECTIONS = (MATERIALS, PRODUCTS, CLIENTS, SUPPLIERS, ORDERS)


class Store(ABC):
    """
    Abstract record store.

    Records are plain JSON-compatible dicts keyed by their "id". Reads
    return copies, so callers never mutate stored state by accident.
    """

    # ===================
    # BACKEND PRIMITIVES
    # ===================

    @abstractmethod
    def list_records(self, collection: str) -> list[dict]:
        """All records of a collection, in insertion order."""

    @abstractmethod
    def get_record(self, collection: str, record_id: str) -> Optional[dict]:
        """One record, or None."""

    @abstractmethod
    def save_record(self, collection: str, record: dict) -> dict:
        """Insert or replace a record by id."""

    @abstractmethod
    def delete_record(self, collection: str, record_id: str) -> bool:
        """Remove a record. Returns False if it did not exist."""

    @abstractmethod
    def get_config(self) -> dict:
        """Stored production config overrides (may be empty)."""

    @abstractmethod
    def save_config(self, config: dict) -> dict:
        """Replace stored production config overrides."""

    @abstractmethod
    def next_sequence(self, name: str) -> int:
        """Increment and return a named counter (first call returns 1)."""

    # ===================
    # STOCK
    # ===================

    def deduct_stock(self, material_id: str, kg: float) -> bool:
        """
        Deduct kilograms from a material's stock.

        Stock never goes below zero: a deduction larger than what is on
        hand leaves the material at 0.

        Args:
            material_id: Material ID
            kg: Kilograms to deduct (>= 0)

        Returns:
            False if the material does not exist
        """
        if kg < 0:
            raise ValidationError(
                "Stock deduction must not be negative",
                code="INVALID_DEDUCTION",
                details={"material_id": material_id, "kg": kg}
            )

        record = self.get_record(MATERIALS, material_id)
        if record is None:
            logger.warning("deduct_stock_material_missing", material_id=material_id)
            return False

        before = float(record.get("current_stock_kg") or 0)
        after = max(0.0, before - kg)
        record["current_stock_kg"] = after
        self.save_record(MATERIALS, record)

        logger.info(
            "stock_deducted",
            material_id=material_id,
            requested_kg=round(kg, 2),
            before_kg=round(before, 2),
            after_kg=round(after, 2),
            clamped=before < kg
        )
        return True

    # ===================
    # TYPED HELPERS
    # ===================

    def list_materials(self) -> list[Material]:
        return [Material(**row) for row in self.list_records(MATERIALS)]

    def get_material(self, material_id: str) -> Optional[Material]:
        row = self.get_record(MATERIALS, material_id)
        return Material(**row) if row else None

    def list_products(self) -> list[ProductRecipe]:
        return [ProductRecipe(**row) for row in self.list_records(PRODUCTS)]

    def get_product(self, product_id: str) -> Optional[ProductRecipe]:
        row = self.get_record(PRODUCTS, product_id)
        return ProductRecipe(**row) if row else None

    def list_clients(self) -> list[Client]:
        return [Client(**row) for row in self.list_records(CLIENTS)]

    def get_client(self, client_id: str) -> Optional[Client]:
        row = self.get_record(CLIENTS, client_id)
        return Client(**row) if row else None

    def list_orders(self) -> list[ProductionOrder]:
        return [ProductionOrder(**row) for row in self.list_records(ORDERS)]

    def save_order(self, order: ProductionOrder) -> ProductionOrder:
        # Stored exactly as produced; later edits to recipes or materials
        # never touch this document.
        self.save_record(ORDERS, order.model_dump(mode="json"))
        return order

    def _check_collection(self, collection: str) -> None:
        if collection not in COLLECTIONS:
            raise ValidationError(
                f"Unknown collection: {collection}",
                code="UNKNOWN_COLLECTION",
                details={"provided": collection, "valid": list(COLLECTIONS)}
            )


class InMemoryStore(Store):
    """Process-local store. Dicts preserve insertion order."""

    def __init__(self):
        self._collections: dict[str, dict[str, dict]] = {name: {} for name in COLLECTIONS}
        self._config: dict = {}
        self._sequences: dict[str, int] = {}

    def list_records(self, collection: str) -> list[dict]:
        self._check_collection(collection)
        return [deepcopy(row) for row in self._collections[collection].values()]

    def get_record(self, collection: str, record_id: str) -> Optional[dict]:
        self._check_collection(collection)
        row = self._collections[collection].get(record_id)
        return deepcopy(row) if row is not None else None

    def save_record(self, collection: str, record: dict) -> dict:
        self._check_collection(collection)
        if not record.get("id"):
            raise ValidationError("Record id is required", code="MISSING_ID")
        self._collections[collection][record["id"]] = deepcopy(record)
        return deepcopy(record)

    def delete_record(self, collection: str, record_id: str) -> bool:
        self._check_collection(collection)
        return self._collections[collection].pop(record_id, None) is not None

    def get_config(self) -> dict:
        return deepcopy(self._config)

    def save_config(self, config: dict) -> dict:
        self._config = deepcopy(config)
        return deepcopy(self._config)

    def next_sequence(self, name: str) -> int:
        self._sequences[name] = self._sequences.get(name, 0) + 1
        return self._sequences[name]


class SupabaseStore(Store):
    """
    Durable store on Supabase.

    Expected tables:
        materials, products, clients, suppliers, orders:
            id text primary key, data jsonb, created_at timestamptz default now()
        app_config: id text primary key, data jsonb
        sequences:  name text primary key, value bigint
    """

    CONFIG_TABLE = "app_config"
    CONFIG_ROW_ID = "production"
    SEQUENCE_TABLE = "sequences"

    def __init__(self, client=None):
        if client is None:
            from config import get_supabase_client
            client = get_supabase_client()
        self.db = client

    def list_records(self, collection: str) -> list[dict]:
        self._check_collection(collection)
        try:
            result = (
                self.db.table(collection)
                .select("id, data")
                .order("created_at")
                .execute()
            )
            return [row["data"] for row in (result.data or [])]
        except Exception as e:
            logger.error("store_list_failed", collection=collection, error=str(e))
            raise DatabaseError("select", str(e), {"collection": collection})

    def get_record(self, collection: str, record_id: str) -> Optional[dict]:
        self._check_collection(collection)
        try:
            result = (
                self.db.table(collection)
                .select("id, data")
                .eq("id", record_id)
                .limit(1)
                .execute()
            )
            rows = result.data or []
            return rows[0]["data"] if rows else None
        except Exception as e:
            logger.error("store_get_failed", collection=collection, id=record_id, error=str(e))
            raise DatabaseError("select", str(e), {"collection": collection})

    def save_record(self, collection: str, record: dict) -> dict:
        self._check_collection(collection)
        if not record.get("id"):
            raise ValidationError("Record id is required", code="MISSING_ID")
        try:
            self.db.table(collection).upsert({"id": record["id"], "data": record}).execute()
            return record
        except Exception as e:
            logger.error("store_save_failed", collection=collection, id=record["id"], error=str(e))
            raise DatabaseError("upsert", str(e), {"collection": collection})

    def delete_record(self, collection: str, record_id: str) -> bool:
        self._check_collection(collection)
        try:
            result = self.db.table(collection).delete().eq("id", record_id).execute()
            return bool(result.data)
        except Exception as e:
            logger.error("store_delete_failed", collection=collection, id=record_id, error=str(e))
            raise DatabaseError("delete", str(e), {"collection": collection})

    def get_config(self) -> dict:
        try:
            result = (
                self.db.table(self.CONFIG_TABLE)
                .select("data")
                .eq("id", self.CONFIG_ROW_ID)
                .limit(1)
                .execute()
            )
            rows = result.data or []
            return rows[0]["data"] if rows else {}
        except Exception as e:
            logger.error("store_get_config_failed", error=str(e))
            raise DatabaseError("select", str(e), {"table": self.CONFIG_TABLE})

    def save_config(self, config: dict) -> dict:
        try:
            self.db.table(self.CONFIG_TABLE).upsert(
                {"id": self.CONFIG_ROW_ID, "data": config}
            ).execute()
            return config
        except Exception as e:
            logger.error("store_save_config_failed", error=str(e))
            raise DatabaseError("upsert", str(e), {"table": self.CONFIG_TABLE})

    def next_sequence(self, name: str) -> int:
        # Single operator session; read-increment-write is sufficient
        try:
            result = (
                self.db.table(self.SEQUENCE_TABLE)
                .select("value")
                .eq("name", name)
                .limit(1)
                .execute()
            )
            rows = result.data or []
            value = (int(rows[0]["value"]) if rows else 0) + 1
            self.db.table(self.SEQUENCE_TABLE).upsert({"name": name, "value": value}).execute()
            return value
        except Exception as e:
            logger.error("store_next_sequence_failed", name=name, error=str(e))
            raise DatabaseError("sequence", str(e), {"name": name})


# Singleton instance
_store: Optional[Store] = None


def get_store() -> Store:
    """Get or create the configured Store."""
    global _store
    if _store is None:
        if settings.store_backend == "supabase":
            _store = SupabaseStore()
        else:
            _store = InMemoryStore()
        logger.info("store_initialized", backend=settings.store_backend)
    return _store


def set_store(store: Optional[Store]) -> None:
    """Replace the active store (None resets to the configured backend)."""
    global _store
    _store = store
