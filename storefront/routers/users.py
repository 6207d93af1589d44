from fastapi import APIRouter, Depends, HTTPException
from storefront.dependencies import get_user_service
from storefront.schemas import (
    BuyProduct,
    LoginResponse,
    LoginUser,
    ProductResponse,
    PurchaseResponse,
    RegisterUser,
    UserDetail,
    UserResponse,
)
from storefront.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["users"])

@router.post("/register", status_code=201, response_model=UserResponse)
async def register(data: RegisterUser, service: UserService = Depends(get_user_service)):
    return await service.register(data.name, data.email, data.password)

@router.post("/login", response_model=LoginResponse)
async def login(data: LoginUser, service: UserService = Depends(get_user_service)):
    return await service.login(data.email, data.password)

@router.post("/buy-product", response_model=PurchaseResponse)
async def buy_product(data: BuyProduct, service: UserService = Depends(get_user_service)):
    await service.buy_product(data.product_id, data.user_id)
    return PurchaseResponse(product_id=data.product_id, user_id=data.user_id)

@router.get("/{user_id}", response_model=UserDetail)
async def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    user = await service.get_user_with_products(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

@router.get("/{user_id}/products", response_model=list[ProductResponse])
async def list_user_products(user_id: int, service: UserService = Depends(get_user_service)):
    return await service.list_products_owned_by(user_id)
