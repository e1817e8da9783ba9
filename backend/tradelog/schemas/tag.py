"""
Tag Schemas
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TagCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)
    
    name: str = Field(min_length=1, max_length=50)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$", description="Hex color, defaults to blue")


class TagRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    
    id: int
    name: str
    color: str
    created_at: Optional[datetime] = None
