from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime

from storefront.security import MAX_PASSWORD_BYTES, password_fits


# --- Product ---

class ProductBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class ProductCreate(ProductBase):
    user_id: int


class ProductResponse(ProductBase):
    id: int
    user_id: int
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# --- User ---

class RegisterUser(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, value: str) -> str:
        # max_length counts characters; bcrypt's limit is in bytes
        if not password_fits(value):
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
        return value


class LoginUser(BaseModel):
    email: str = Field(max_length=255)
    password: str = Field(max_length=MAX_PASSWORD_BYTES)


class LoginResponse(BaseModel):
    id: int
    name: str
    email: str


class UserResponse(LoginResponse):
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class UserDetail(UserResponse):
    products: list[ProductResponse] = []


# --- Purchase ---

class BuyProduct(BaseModel):
    product_id: int
    user_id: int


class PurchaseResponse(BuyProduct):
    status: str = "validated"
