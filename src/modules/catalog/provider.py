"""Catalog providers: where the product catalog document comes from."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from pydantic import ValidationError as PydanticValidationError

from src.config import settings
from src.exceptions import DependencyUnavailableException, ValidationException
from src.modules.catalog.schemas import Catalog
from src.modules.catalog.validators import validate_catalog_document
from src.modules.options.client import OptionsClient

logger = logging.getLogger(__name__)


class CatalogProviderBase(ABC):
    @abstractmethod
    async def fetch_catalog(self) -> Catalog:
        """Return the current catalog from the source of truth.

        Raises DependencyUnavailableException when the source cannot be read
        and ValidationException when the document is malformed.
        """

    async def close(self) -> None:
        """Release any connections held by the provider."""


class OptionsCatalogProvider(CatalogProviderBase):
    """Reads the catalog and the legacy price rules from the admin options store."""

    def __init__(
        self,
        client: OptionsClient | None = None,
        catalog_key: str | None = None,
        price_rules_key: str | None = None,
    ) -> None:
        self.client = client or OptionsClient(
            base_url=settings.catalog_base_url,
            timeout=settings.catalog_timeout_seconds,
            max_retries=settings.catalog_max_retries,
        )
        self.catalog_key = catalog_key or settings.catalog_option_key
        self.price_rules_key = price_rules_key or settings.catalog_price_rules_key

    async def _fetch_price_rules(self) -> dict | None:
        try:
            rules = await self.client.get_option(self.price_rules_key)
        except DependencyUnavailableException as exc:
            logger.warning("Price rules unavailable, continuing without: %s", exc.message)
            return None
        return rules if isinstance(rules, dict) else None

    async def fetch_catalog(self) -> Catalog:
        document = await self.client.get_option(self.catalog_key)
        if document is None:
            raise DependencyUnavailableException(
                f"Catalog option '{self.catalog_key}' is not set"
            )
        validate_catalog_document(document)

        price_rules = await self._fetch_price_rules()
        if price_rules is not None:
            document = {**document, "priceRules": price_rules}

        try:
            catalog = Catalog.model_validate(document)
        except PydanticValidationError as exc:
            raise ValidationException(
                message="Catalog document could not be parsed",
                details=[
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in exc.errors()
                ],
            ) from exc

        logger.info("Fetched catalog with %d products", len(catalog.products))
        return catalog

    async def close(self) -> None:
        await self.client.close()


_provider: CatalogProviderBase | None = None


def get_catalog_provider() -> CatalogProviderBase:
    global _provider
    if _provider is None:
        _provider = OptionsCatalogProvider()
    return _provider
