from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..config import Config
from ..deps import get_session_id, get_storage
from ...data.storage import Storage
from ...schemas.order_models import CreateOrderIn, OrderOut, UpdateOrderIn

router = APIRouter()


@router.post("/orders", response_model=OrderOut, status_code=201)
def create_order(body: CreateOrderIn, session_id: str = Depends(get_session_id),
                 storage: Storage = Depends(get_storage)):
    """Check out the session's cart; the cart is emptied in the same transaction."""
    order = storage.create_order_from_cart(session_id, body.model_dump(), currency=Config.CURRENCY)
    return OrderOut.model_validate(order)


@router.get("/orders", response_model=List[OrderOut])
def list_orders(session_id: str = Depends(get_session_id), storage: Storage = Depends(get_storage)):
    return [OrderOut.model_validate(o) for o in storage.get_orders_for_session(session_id)]


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(order_id: int, storage: Storage = Depends(get_storage)):
    order = storage.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return OrderOut.model_validate(order)


@router.put("/orders/{order_id}", response_model=OrderOut)
@router.post("/orders/{order_id}/status", response_model=OrderOut)
def update_order(order_id: int, body: UpdateOrderIn, storage: Storage = Depends(get_storage)):
    order = storage.update_order(order_id, status=body.status, payment_intent_id=body.payment_intent_id)
    return OrderOut.model_validate(order)
