from fastapi import APIRouter, Depends, HTTPException
from storefront.dependencies import get_product_service
from storefront.schemas import ProductCreate, ProductResponse
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/api/v1/products", tags=["products"])

@router.post("", status_code=201, response_model=ProductResponse)
async def create_product(data: ProductCreate, service: ProductService = Depends(get_product_service)):
    return await service.create_product(data.name, data.user_id)

@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, service: ProductService = Depends(get_product_service)):
    product = await service.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
