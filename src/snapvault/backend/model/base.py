"""Base data model class"""
from typing import Optional
from sqlmodel import SQLModel, Field


class BaseModel(SQLModel):
    """Base class for all data tables with a store-assigned identity"""

    id: Optional[int] = Field(default=None, primary_key=True)
