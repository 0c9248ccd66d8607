"""Application service: Deactivate Product use case.

Products referenced by recorded sales must stay resolvable, so retiring
a product flags it inactive instead of deleting the record.
"""

from __future__ import annotations

import logging

from pos.domain.exceptions import EntityNotFoundError
from pos.domain.model.context import RequestContext
from pos.domain.repository.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


class DeactivateProductHandler:

    def __init__(
        self,
        catalog: CatalogStore,
        catalog_roles: frozenset[str] = frozenset({"admin"}),
    ) -> None:
        self._catalog = catalog
        self._catalog_roles = catalog_roles

    def handle(self, context: RequestContext, product_id: str) -> None:
        context.require_role(self._catalog_roles, "manage the catalog")

        product = self._catalog.get_product(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")

        product.deactivate()
        self._catalog.update_product(product_id, {"active": False})
        logger.info("Product %s '%s' deactivated by %s", product_id, product.name, context.user_id)
