"""
Inventory Server - Tag Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class TagCreate(BaseModel):
    # Nome aparado antes do min_length: so espacos e rejeitado
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)


class TagUpdate(TagCreate):
    pass


class TagResponse(BaseModel):
    id: str
    name: str
    slug: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TagAssignmentsUpdate(BaseModel):
    tag_ids: List[str]


class TagAssignmentsResponse(BaseModel):
    client_id: str
    tag_ids: List[str]
