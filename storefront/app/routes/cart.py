from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_session_id, get_storage
from ...data.storage import Storage
from ...schemas.io_models import AddToCartIn, CartItemOut, UpdateCartIn

router = APIRouter()

REMOVED = {"message": "Item removed from cart"}


@router.get("/cart", response_model=List[CartItemOut])
def get_cart(session_id: str = Depends(get_session_id), storage: Storage = Depends(get_storage)):
    return [CartItemOut.model_validate(i) for i in storage.get_cart_items(session_id)]


@router.post("/cart", response_model=CartItemOut, status_code=201)
def add_to_cart(body: AddToCartIn, session_id: str = Depends(get_session_id),
                storage: Storage = Depends(get_storage)):
    if body.quantity < 1:
        raise HTTPException(status_code=400, detail="Quantity must be at least 1")
    item = storage.add_to_cart(session_id, body.product_id, body.quantity)
    return CartItemOut.model_validate(item)


@router.put("/cart/{item_id}")
def update_cart_item(item_id: int, body: UpdateCartIn, session_id: str = Depends(get_session_id),
                     storage: Storage = Depends(get_storage)):
    item = storage.update_cart_item_quantity(session_id, item_id, body.quantity)
    if item is None:
        return REMOVED
    return CartItemOut.model_validate(item).model_dump(by_alias=True, mode="json")


@router.delete("/cart/{item_id}")
def remove_cart_item(item_id: int, session_id: str = Depends(get_session_id),
                     storage: Storage = Depends(get_storage)):
    storage.remove_from_cart(session_id, item_id)
    return REMOVED


@router.delete("/cart")
def clear_cart(session_id: str = Depends(get_session_id), storage: Storage = Depends(get_storage)):
    return {"message": "Cart cleared", "removed": storage.clear_cart(session_id)}
