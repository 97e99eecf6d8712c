# crm_segments/schemas/common.py
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Success envelope shared by every endpoint."""

    success: bool = True
    data: T
    message: Optional[str] = None


class CountResponse(BaseModel):
    success: bool = True
    count: int


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class PaginationInfo(BaseModel):
    currentPage: int
    limit: int
    totalRecords: int
    totalPage: int
    hasNext: bool
    hasPrevious: bool


class PaginatedResponse(BaseModel, Generic[T]):
    success: bool = True
    data: List[T]
    pagination: PaginationInfo
