"""Application service: Checkout use case.

Builds a cart from what the cashier scanned, hands it to the checkout
engine and maps the result for display. The cart is cleared only after
a committed sale; on any failure it is left intact for a retry.
"""

from __future__ import annotations

from decimal import Decimal

from pos.application.dto import CartItemSpec, CheckoutDTO, SaleLineDTO
from pos.domain.exceptions import EntityNotFoundError, InsufficientStockError
from pos.domain.model.cart import Cart, CartUpdate
from pos.domain.model.checkout import CheckoutResult
from pos.domain.model.context import RequestContext
from pos.domain.repository.catalog_store import CatalogStore
from pos.domain.service.checkout_engine import CheckoutEngine


class CheckoutHandler:

    def __init__(self, catalog: CatalogStore, engine: CheckoutEngine) -> None:
        self._catalog = catalog
        self._engine = engine

    def build_cart(self, item_specs: list[CartItemSpec]) -> Cart:
        """Resolve scanned items into a cart using current catalog data."""
        cart = Cart()
        for spec in item_specs:
            product = self._catalog.get_product(spec.product_id)
            if product is None or not product.active:
                raise EntityNotFoundError(f"Product not found: '{spec.product_id}'")
            existing = cart.get(product.id)
            already = existing.quantity if existing else 0
            if cart.add(product, spec.quantity) is not CartUpdate.ADDED:
                raise InsufficientStockError(
                    product_id=product.id,
                    requested=already + spec.quantity,
                    available=product.stock,
                    product_name=product.name,
                )
        return cart

    def handle(
        self,
        context: RequestContext,
        cart: Cart,
        payment_method: str,
        customer: str = "",
        discount: Decimal | int | str = 0,
    ) -> CheckoutDTO:
        request = cart.to_request(payment_method, customer=customer, discount=discount)
        result = self._engine.checkout(request, context)
        cart.clear()
        return self._to_dto(result)

    def handle_items(
        self,
        context: RequestContext,
        item_specs: list[CartItemSpec],
        payment_method: str,
        customer: str = "",
        discount: Decimal | int | str = 0,
    ) -> CheckoutDTO:
        cart = self.build_cart(item_specs)
        return self.handle(context, cart, payment_method, customer, discount)

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _to_dto(result: CheckoutResult) -> CheckoutDTO:
        return CheckoutDTO(
            sale_id=result.sale_id,
            lines=[SaleLineDTO.from_domain(line) for line in result.lines],
            total=str(result.total),
            profit=str(result.profit),
            item_count=result.item_count,
            warnings=[str(w) for w in result.warnings],
        )
