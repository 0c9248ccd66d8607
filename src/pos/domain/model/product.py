"""Product aggregate.

Products live independently of sales. They have their own lifecycle:
prices change, stock is sold and restocked, products are retired from
the catalog. Retired products are deactivated rather than removed so
historical ledger entries keep pointing at a real record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from pos.domain.exceptions import CatalogIntegrityError, ValidationError
from pos.domain.model.value_objects import Money

DEFAULT_LOW_STOCK_THRESHOLD = 5
DEFAULT_CATEGORY = "General"
MAX_IMAGES = 5

# Fields an edit may change. Stock is deliberately absent: it moves only
# through checkout and restock.
EDITABLE_FIELDS = frozenset({
    "name",
    "cost_price",
    "selling_price",
    "low_stock_threshold",
    "category",
    "description",
    "supplier",
    "images",
})


@dataclass
class Product:
    """A product in the catalog.

    Invariants:
    - ``name`` is non-empty
    - ``cost_price`` and ``selling_price`` are positive and
      ``selling_price >= cost_price``
    - ``stock`` is never negative
    - at most ``MAX_IMAGES`` image URIs
    """

    id: str
    name: str
    cost_price: Money
    selling_price: Money
    stock: int = 0
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    category: str = DEFAULT_CATEGORY
    description: str = ""
    supplier: str = ""
    images: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    active: bool = True

    # --- Factory (used for NEW products only) ---------------------------------

    @staticmethod
    def create(
        product_id: str,
        name: str,
        cost_price: Money,
        selling_price: Money,
        stock: int = 0,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        category: str = DEFAULT_CATEGORY,
        description: str = "",
        supplier: str = "",
        images: list[str] | None = None,
    ) -> Product:
        """Create a new product, enforcing all invariants."""
        product = Product(
            id=product_id,
            name=(name or "").strip(),
            cost_price=cost_price,
            selling_price=selling_price,
            stock=stock,
            low_stock_threshold=low_stock_threshold,
            category=(category or DEFAULT_CATEGORY).strip() or DEFAULT_CATEGORY,
            description=(description or "").strip(),
            supplier=(supplier or "").strip(),
            images=list(images or []),
        )
        product.validate()
        return product

    # --- Validation -----------------------------------------------------------

    def validate(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Product name is required")
        if self.cost_price.is_zero or self.selling_price.is_zero:
            raise ValidationError("Cost and selling price must be greater than zero")
        if self.selling_price < self.cost_price:
            raise ValidationError(
                f"Selling price {self.selling_price} is below cost price {self.cost_price}"
            )
        if not isinstance(self.stock, int) or self.stock < 0:
            raise ValidationError("Stock cannot be negative")
        if not isinstance(self.low_stock_threshold, int) or self.low_stock_threshold <= 0:
            raise ValidationError("Low stock threshold must be a positive integer")
        if len(self.images) > MAX_IMAGES:
            raise ValidationError(f"Maximum {MAX_IMAGES} images allowed")

    def assert_sellable_pricing(self) -> None:
        """Re-check the price invariant against the stored record.

        Raised as a catalog integrity fault because a stored product
        should never violate it; a concurrent edit is the usual cause.
        """
        if self.selling_price < self.cost_price:
            raise CatalogIntegrityError(
                f"Catalog integrity fault for {self.name}: selling price "
                f"{self.selling_price} is below cost price {self.cost_price}"
            )

    # --- Mutations ------------------------------------------------------------

    def apply_changes(self, changes: dict) -> None:
        """Apply a partial edit, validating the resulting record.

        This does NOT affect any existing sales because ledger entries
        capture a price snapshot at checkout time.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot edit field(s): {', '.join(sorted(unknown))}"
            )
        if not self.active:
            raise ValidationError(f"Product '{self.name}' is inactive")

        for name, value in changes.items():
            if name == "images":
                value = list(value)
            elif isinstance(value, str):
                value = value.strip()
            setattr(self, name, value)
        self.validate()

    def restock(self, quantity: int) -> None:
        if not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Restock quantity must be positive")
        self.stock += quantity

    def deactivate(self) -> None:
        if not self.active:
            raise ValidationError(f"Product '{self.name}' is already inactive")
        self.active = False

    # --- Computed properties --------------------------------------------------

    @property
    def unit_margin(self) -> Money:
        return self.selling_price - self.cost_price

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.low_stock_threshold

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock == 0
