"""Storage layer: catalog, cart, order and contact persistence over a SQLAlchemy session.

Every cart operation takes the caller's session id and filters on it, so one
shopper's cart rows are never visible to another session.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .models import (
    CartItem, Category, ContactSubmission, Order, OrderItem, OrderStatus, Product,
)
from ..app.errors import EmptyCartError, InactiveProductError, InvalidOrderStatusError, NotFoundError
from ..utils.logger import get_logger

logger = get_logger("storage")

VALID_ORDER_STATUSES = {s.value for s in OrderStatus}


class Storage:
    """Thin repository over one database session; callers own the session lifecycle."""

    def __init__(self, db: Session):
        self.db = db

    # --- Categories ---

    def get_categories(self) -> List[Category]:
        return self.db.query(Category).order_by(Category.id).all()

    def get_category(self, category_id: int) -> Optional[Category]:
        return self.db.get(Category, category_id)

    def get_category_by_slug(self, slug: str) -> Optional[Category]:
        return self.db.query(Category).filter(Category.slug == slug).first()

    def create_category(self, name: str, slug: str, description: Optional[str] = None,
                        image_url: Optional[str] = None) -> Category:
        category = Category(name=name, slug=slug, description=description, image_url=image_url)
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category

    # --- Products ---

    def _product_query(self):
        return self.db.query(Product).options(joinedload(Product.category))

    def get_products(self, category_id: Optional[int] = None, active_only: bool = True) -> List[Product]:
        q = self._product_query()
        if active_only:
            q = q.filter(Product.is_active.is_(True))
        if category_id is not None:
            q = q.filter(Product.category_id == category_id)
        return q.order_by(Product.id).all()

    def get_product(self, product_id: int) -> Optional[Product]:
        return self._product_query().filter(Product.id == product_id).first()

    def get_product_by_sku(self, sku: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.sku == sku).first()

    def get_featured_products(self, limit: int = 6) -> List[Product]:
        return (
            self._product_query()
            .filter(Product.is_featured.is_(True), Product.is_active.is_(True))
            .order_by(Product.id)
            .limit(limit)
            .all()
        )

    def search_products(self, query: str) -> List[Product]:
        """Case-insensitive substring search over name, description, materials, gemstones and category."""
        needle = (query or "").strip().lower()
        if not needle:
            return []

        # materials and gemstones are JSON lists, so matching happens in Python
        candidates = self.get_products()
        results = []
        for p in candidates:
            haystacks = [p.name, p.description, p.category.name if p.category else ""]
            haystacks += list(p.materials or []) + list(p.gemstones or [])
            if any(needle in (h or "").lower() for h in haystacks):
                results.append(p)
        logger.info(f"[CATALOG] search '{needle}' -> {len(results)} result(s)")
        return results

    def create_product(self, **fields: Any) -> Product:
        product = Product(**fields)
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update_product_stock(self, product_id: int, quantity: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product not found")
        product.stock_quantity = quantity
        self.db.commit()
        self.db.refresh(product)
        return product

    # --- Cart ---

    def _cart_item(self, session_id: str, item_id: int) -> CartItem:
        item = (
            self.db.query(CartItem)
            .filter(CartItem.id == item_id, CartItem.session_id == session_id)
            .first()
        )
        if not item:
            raise NotFoundError("Cart item not found")
        return item

    def get_cart_items(self, session_id: str) -> List[CartItem]:
        return (
            self.db.query(CartItem)
            .options(joinedload(CartItem.product).joinedload(Product.category))
            .filter(CartItem.session_id == session_id)
            .order_by(CartItem.id)
            .all()
        )

    def _cart_row(self, session_id: str, product_id: int) -> Optional[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(CartItem.session_id == session_id, CartItem.product_id == product_id)
            .first()
        )

    def _bump_quantity(self, item: CartItem, quantity: int) -> None:
        self.db.query(CartItem).filter(CartItem.id == item.id).update(
            {CartItem.quantity: CartItem.quantity + quantity}, synchronize_session=False
        )
        self.db.commit()

    def add_to_cart(self, session_id: str, product_id: int, quantity: int = 1) -> CartItem:
        """Add a product to the session's cart, merging with an existing row for the same product."""
        product = self.db.get(Product, product_id)
        if not product or not product.is_active:
            raise InactiveProductError()

        item = self._cart_row(session_id, product_id)
        if item:
            self._bump_quantity(item, quantity)
        else:
            item = CartItem(session_id=session_id, product_id=product_id, quantity=quantity)
            self.db.add(item)
            try:
                self.db.commit()
            except IntegrityError:
                # A concurrent add inserted the row first
                self.db.rollback()
                item = self._cart_row(session_id, product_id)
                if item is None:
                    raise
                self._bump_quantity(item, quantity)

        self.db.refresh(item)
        logger.info(f"[CART] {session_id[:16]} product={product_id} qty -> {item.quantity}")
        return item

    def update_cart_item_quantity(self, session_id: str, item_id: int, quantity: int) -> Optional[CartItem]:
        """Set a cart row's quantity; a quantity of zero or less removes the row and returns None."""
        item = self._cart_item(session_id, item_id)
        if quantity <= 0:
            self.db.delete(item)
            self.db.commit()
            return None
        item.quantity = quantity
        self.db.commit()
        self.db.refresh(item)
        return item

    def remove_from_cart(self, session_id: str, item_id: int) -> None:
        item = self._cart_item(session_id, item_id)
        self.db.delete(item)
        self.db.commit()

    def clear_cart(self, session_id: str) -> int:
        removed = (
            self.db.query(CartItem)
            .filter(CartItem.session_id == session_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed

    @staticmethod
    def cart_total(items: List[CartItem]) -> float:
        return round(sum(i.product.price * i.quantity for i in items), 2)

    # --- Orders ---

    def create_order_from_cart(self, session_id: str, details: Dict[str, Any], currency: str = "CAD") -> Order:
        """
        Turn the session's cart into an order.

        Args:
            session_id: Cart session identifier
            details: Customer fields (customer_email, shipping_address, ...)
            currency: Currency code recorded on the order

        Returns:
            The persisted order with its items
        """
        cart = self.get_cart_items(session_id)
        if not cart:
            raise EmptyCartError()

        order = Order(
            session_id=session_id,
            status=OrderStatus.pending.value,
            total_amount=self.cart_total(cart),
            currency=currency,
            customer_email=details["customer_email"],
            customer_name=details.get("customer_name"),
            customer_phone=details.get("customer_phone"),
            shipping_address=details["shipping_address"],
            billing_address=details.get("billing_address"),
            stripe_payment_intent_id=details.get("stripe_payment_intent_id"),
        )
        for row in cart:
            order.items.append(OrderItem(product_id=row.product_id, quantity=row.quantity, price=row.product.price))
            self.db.delete(row)

        self.db.add(order)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"[ORDER] #{order.id} created for {session_id[:16]}: {len(cart)} line(s), total={order.total_amount}")
        return self.get_order(order.id)

    def get_order(self, order_id: int) -> Optional[Order]:
        return (
            self.db.query(Order)
            .options(joinedload(Order.items).joinedload(OrderItem.product))
            .filter(Order.id == order_id)
            .first()
        )

    def get_orders_for_session(self, session_id: str) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.session_id == session_id)
            .order_by(Order.created_at, Order.id)
            .all()
        )

    def update_order(self, order_id: int, status: Optional[str] = None,
                     payment_intent_id: Optional[str] = None) -> Order:
        order = self.db.get(Order, order_id)
        if not order:
            raise NotFoundError("Order not found")
        if status is not None and status not in VALID_ORDER_STATUSES:
            raise InvalidOrderStatusError(status)
        if status is not None:
            order.status = status
        if payment_intent_id:
            order.stripe_payment_intent_id = payment_intent_id
        self.db.commit()
        logger.info(f"[ORDER] #{order_id} status={order.status}")
        return self.get_order(order_id)

    # --- Contact ---

    def create_contact_submission(self, name: str, email: str, subject: str, message: str,
                                  phone: Optional[str] = None, is_consultation: bool = False,
                                  preferred_date: Optional[datetime] = None) -> ContactSubmission:
        submission = ContactSubmission(
            name=name,
            email=email,
            phone=phone or None,
            subject=subject,
            message=message,
            is_consultation=bool(is_consultation),
            preferred_date=preferred_date,
        )
        self.db.add(submission)
        self.db.commit()
        self.db.refresh(submission)
        return submission

    def get_contact_submissions(self) -> List[ContactSubmission]:
        return self.db.query(ContactSubmission).order_by(ContactSubmission.id).all()
