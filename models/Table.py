from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

class Table(BaseModel):
    table_number: str
    capacity: int = Field(ge=1)

class TableUpdate(BaseModel):
    table_number: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)

class TableResponse(BaseModel):
    id: int
    restaurant_id: int
    table_number: str
    capacity: int

    model_config = ConfigDict(from_attributes=True)
