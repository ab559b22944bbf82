from pydantic import BaseModel
from typing import Any, Generic, Optional, TypeVar, Union
from uuid import UUID

from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from shared.utils.enums import UserRole

# Shared properties
T = TypeVar("T")


class UserToken(BaseModel):
    user_id: UUID
    role: UserRole
    name: Optional[str] = None
    email: Optional[str] = None
    exp: Optional[int] = None


class CommonQueryParams(EmptyStringModel):
    search: Optional[str] = None
    skip: Optional[int] = 0
    limit: Optional[int] = 100


class Lookup(BaseModel):
    id: Union[str, UUID]  # accepts both UUID and str
    name: str

    class Config:
        from_attributes = True


class JsonOutResult(BaseModel, Generic[T]):
    success: bool
    status_code: str
    message: str
    data: Optional[T] = None
