from pydantic import BaseModel, Field, field_serializer
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional

# Response dates render in local time without zone information
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Field rules are enforced by application.validation; the shapes here only
# carry types so that blank and missing values reach the validators.

class CustomerCreate(BaseModel):
    firstname: Optional[str] = Field(None, examples=["Juan"])
    lastname: Optional[str] = Field(None, examples=["Pérez"])
    email: Optional[str] = Field(None, examples=["juan.perez@email.com"])
    phone: Optional[str] = Field(None, examples=["+51987654321"])
    address: Optional[str] = Field(None, examples=["Av. Javier Prado 123, San Isidro, Lima"])

class CustomerUpdate(BaseModel):
    """Partial update: absent or blank fields keep their stored value."""
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

class AuditedRead(BaseModel):
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True

    @field_serializer("created_at", "updated_at", when_used="json")
    def _format_datetime(self, value: Optional[datetime]) -> Optional[str]:
        if value is None:
            return None
        return value.strftime(DATETIME_FORMAT)

class CustomerResponse(AuditedRead):
    id: int
    firstname: str
    lastname: str
    full_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None

class CustomerPage(BaseModel):
    items: list[CustomerResponse]
    total: int
    skip: int
    limit: int

class ExistsResponse(BaseModel):
    exists: bool

class CountResponse(BaseModel):
    count: int

class EmployeeCreate(BaseModel):
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None

class EmployeeRead(AuditedRead):
    id: int
    firstname: str
    lastname: str
    email: str
    position: Optional[str] = None
    phone: Optional[str] = None

class SupplierCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

class SupplierRead(AuditedRead):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

class ErrorResponse(BaseModel):
    message: str
    status: int
    timestamp: datetime = Field(default_factory=datetime.now)
    path: str
    details: Optional[list[str]] = None
