#!/usr/bin/env python3
"""
Inspect the storefront database: print catalog, carts, orders and contact submissions.

Usage:
  python storefront/scripts/inspect_db.py

Notes:
- Uses the existing SQLAlchemy session and models.
- Read-only inspection; makes no writes.
"""

from __future__ import annotations

import os
import sys
from collections import Counter
from datetime import datetime

# Allow running from repo root or from storefront/
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from storefront.data.database import SessionLocal
from storefront.data.models import CartItem, Category, ContactSubmission, Order, OrderItem, Product


def line(ch: str = "-", width: int = 60) -> str:
    return ch * width


def header(title: str) -> None:
    print(line("="))
    print(title)
    print(line("="))


def print_catalog(session):
    header("Catalog")
    categories = session.query(Category).order_by(Category.id).all()
    print(f"Total categories: {len(categories)}")
    for c in categories:
        print(f"\n[{c.slug}] {c.name} ({len(c.products)} products)")
        for p in sorted(c.products, key=lambda p: p.id):
            flags = []
            if p.is_featured:
                flags.append("featured")
            if not p.is_active:
                flags.append("inactive")
            suffix = f" [{', '.join(flags)}]" if flags else ""
            print(f"  - #{p.id} {p.sku} {p.name} | ${p.price:.2f} | stock={p.stock_quantity}{suffix}")

    orphans = session.query(Product).filter(Product.category_id.is_(None)).all()
    if orphans:
        print(f"\nUncategorised products: {len(orphans)}")
        for p in orphans:
            print(f"  - #{p.id} {p.sku} {p.name}")
    print()


def print_carts(session):
    header("Carts")
    items = session.query(CartItem).order_by(CartItem.session_id, CartItem.id).all()
    per_session = Counter(i.session_id for i in items)
    print(f"Active carts: {len(per_session)} | line items: {len(items)}")
    for i in items:
        pname = i.product.name if i.product else "(missing product)"
        print(f"  - {i.session_id[:12]} | {i.quantity} x {pname} (product_id={i.product_id})")
    print()


def print_orders(session):
    header("Orders")
    orders = session.query(Order).order_by(Order.id).all()
    print(f"Total orders: {len(orders)}")
    for o in orders:
        created = o.created_at.strftime("%Y-%m-%d %I:%M %p") if o.created_at else "N/A"
        print(
            f"\nOrder #{o.id} | status={o.status} | total={o.total_amount:.2f} {o.currency} | email={o.customer_email}"
        )
        print(f"  Created: {created}")
        print(f"  Ship to: {o.shipping_address}")

        items = session.query(OrderItem).filter(OrderItem.order_id == o.id).all()
        print(f"  Items: {len(items)}")
        for it in items:
            pname = it.product.name if it.product else "(missing product)"
            print(f"    - {it.quantity} x {pname} (product_id={it.product_id}) @ ${float(it.price or 0):.2f}")
    print()


def print_contacts(session):
    header("Contact submissions")
    submissions = session.query(ContactSubmission).order_by(ContactSubmission.id).all()
    print(f"Total submissions: {len(submissions)}")
    for s in submissions:
        kind = "consultation" if s.is_consultation else "message"
        print(f"  - #{s.id} {s.name} <{s.email}> | {kind} | {s.subject}")
    print()


def main():
    session = SessionLocal()
    try:
        print(f"DB Inspection - {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print_catalog(session)
        print_carts(session)
        print_orders(session)
        print_contacts(session)
        print(line("="))
        print("End of database inspection")
        print(line("="))
    finally:
        session.close()


if __name__ == "__main__":
    main()
