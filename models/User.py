from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr

class Customer(BaseModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: EmailStr
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
