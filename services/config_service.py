"""
Config service: single source of truth for production constants.

Defaults come from environment settings; operator overrides are stored in
the record store and merged on top. Density overrides are merged per
material type, so types added later still get their built-in default.
"""

from typing import Optional
import structlog

from config import settings
from config.production import DEFAULT_MATERIAL_DENSITIES
from models.material import MaterialType
from models.production import ProductionConfig, ProductionConfigUpdate
from services.store import Store, get_store

logger = structlog.get_logger(__name__)


def default_config() -> ProductionConfig:
    """Production config built purely from settings and built-in tables."""
    return ProductionConfig(
        fixed_startup_meters=settings.fixed_startup_meters,
        reprint_meters=settings.reprint_meters,
        lamination1_meters=settings.lamination1_meters,
        lamination2_meters=settings.lamination2_meters,
        variable_scrap_percent=settings.variable_scrap_percent,
        material_densities={MaterialType(k): v for k, v in DEFAULT_MATERIAL_DENSITIES.items()},
        shortfall_policy=settings.stock_shortfall_policy,
    )


class ConfigService:
    """Reads and updates the production config."""

    def __init__(self, store: Optional[Store] = None):
        self.store = store or get_store()

    def get_config(self) -> ProductionConfig:
        """
        Effective config: defaults with stored overrides applied.

        Unknown density keys in stored data are dropped with a warning
        rather than failing the whole config.
        """
        base = default_config().model_dump()
        stored = self.store.get_config()

        densities = dict(base["material_densities"])
        for key, value in (stored.get("material_densities") or {}).items():
            try:
                densities[MaterialType(key)] = value
            except ValueError:
                logger.warning("unknown_density_type_ignored", material_type=key)

        merged = {**base, **{k: v for k, v in stored.items() if v is not None}}
        merged["material_densities"] = densities
        return ProductionConfig(**merged)

    def update_config(self, update: ProductionConfigUpdate) -> ProductionConfig:
        """
        Apply a partial update and persist it.

        Returns:
            The new effective config
        """
        changes = update.model_dump(mode="json", exclude_none=True)
        stored = self.store.get_config()

        if "material_densities" in changes:
            densities = dict(stored.get("material_densities") or {})
            densities.update(changes.pop("material_densities"))
            stored["material_densities"] = densities

        stored.update(changes)
        self.store.save_config(stored)

        logger.info("production_config_updated", fields=sorted(update.model_fields_set))
        return self.get_config()


# Singleton
_config_service: Optional[ConfigService] = None


def get_config_service() -> ConfigService:
    global _config_service
    if _config_service is None:
        _config_service = ConfigService()
    return _config_service
