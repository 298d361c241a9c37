from typing import List, Optional
from pydantic import BaseModel, Field

class Availability(BaseModel):
    available: bool
    available_table_count: int = 0
    alternative_slots: List[str] = Field(default_factory=list)
    message: Optional[str] = None
