from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_storage
from ...data.etsy_links import get_etsy_link
from ...data.storage import Storage
from ...schemas.io_models import CategoryOut, ProductOut
from ...utils.logger import get_logger

logger = get_logger("catalog")

router = APIRouter()


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(storage: Storage = Depends(get_storage)):
    return [CategoryOut.model_validate(c) for c in storage.get_categories()]


@router.get("/products", response_model=List[ProductOut])
def list_products(category: Optional[str] = None, storage: Storage = Depends(get_storage)):
    """Active products, optionally narrowed to a category slug ("all" means no filter)."""
    category_id = None
    if category and category != "all":
        found = storage.get_category_by_slug(category)
        if found:
            category_id = found.id
        else:
            logger.info(f"[CATALOG] unknown category slug '{category}', returning all products")
    return [ProductOut.model_validate(p) for p in storage.get_products(category_id=category_id)]


@router.get("/products/featured", response_model=List[ProductOut])
def featured_products(storage: Storage = Depends(get_storage)):
    return [ProductOut.model_validate(p) for p in storage.get_featured_products()]


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int, storage: Storage = Depends(get_storage)):
    product = storage.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductOut.model_validate(product)


@router.get("/search", response_model=List[ProductOut])
def search(q: str = "", storage: Storage = Depends(get_storage)):
    return [ProductOut.model_validate(p) for p in storage.search_products(q)]


@router.get("/etsy-link/{product_id}")
def etsy_link(product_id: int, storage: Storage = Depends(get_storage)):
    product = storage.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"etsyLink": get_etsy_link(product.sku)}
