from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class Owner(BaseModel):
    id: str
    email: str
    photo: str = ""


class PostCreate(BaseModel):
    description: str = Field(..., min_length=1)
    location: Optional[str] = None
    mood: int = Field(..., ge=1, le=10)
    temperature: float
    isPublic: bool = False


class PostUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = None
    mood: Optional[int] = Field(None, ge=1, le=10)
    temperature: Optional[float] = None
    isPublic: Optional[bool] = None


class PostOut(BaseModel):
    id: str
    user: Optional[Owner] = None
    description: str
    location: Optional[str] = None
    mood: int
    temperature: float
    photo: str = ""
    isPublic: bool = False
    isApproved: bool = False
    createdAt: datetime
    updatedAt: datetime


class PageOut(BaseModel):
    items: List[PostOut] = []
    currentPage: int
    totalPages: int
    itemsPerPage: int
    totalItems: int
