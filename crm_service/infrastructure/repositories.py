"""Query helpers over the SQLAlchemy session, one class per table.

Repositories only read and stage changes; committing is left to the
services so a write and its audit stamps land in one transaction.
"""
from typing import Generic, Optional, Type, TypeVar
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from crm_service.domain.models import Base, Customer, Employee, Supplier

ModelT = TypeVar("ModelT", bound=Base)

LIKE_ESCAPE = "\\"

def escape_like(term: str) -> str:
    """Make ``%`` and ``_`` in user input match literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )

class Repository(Generic[ModelT]):
    model: Type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def get(self, record_id: int) -> Optional[ModelT]:
        return self.db.get(self.model, record_id)

    def list(self):
        return self.db.query(self.model).order_by(self.model.id).all()

    def add(self, obj: ModelT) -> ModelT:
        self.db.add(obj)
        return obj

    def delete(self, obj: ModelT) -> None:
        self.db.delete(obj)

class CustomerRepository(Repository[Customer]):
    model = Customer

    def _active(self):
        return self.db.query(Customer).filter(Customer.active.is_(True))

    def get_active(self, customer_id: int) -> Optional[Customer]:
        return self._active().filter(Customer.id == customer_id).first()

    def list_active(self):
        return self._active().order_by(Customer.id).all()

    def page_active(self, skip: int, limit: int):
        query = self._active()
        total = query.count()
        items = query.order_by(Customer.id).offset(skip).limit(limit).all()
        return items, total

    def search_active(self, term: str, skip: int, limit: int):
        pattern = f"%{escape_like(term)}%"
        query = self._active().filter(
            or_(
                Customer.firstname.ilike(pattern, escape=LIKE_ESCAPE),
                Customer.lastname.ilike(pattern, escape=LIKE_ESCAPE),
                Customer.email.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
        total = query.count()
        items = query.order_by(Customer.id).offset(skip).limit(limit).all()
        return items, total

    def exists_active_email(self, email: str, exclude_id: Optional[int] = None) -> bool:
        query = self._active().filter(Customer.email == email)
        if exclude_id is not None:
            query = query.filter(Customer.id != exclude_id)
        return self.db.query(query.exists()).scalar()

    def count_active(self) -> int:
        return self.db.query(func.count(Customer.id)).filter(Customer.active.is_(True)).scalar()

    def recent_active(self, limit: int):
        return (
            self._active()
            .order_by(Customer.created_at.desc(), Customer.id.desc())
            .limit(limit)
            .all()
        )

    def active_with_phone(self):
        return (
            self._active()
            .filter(Customer.phone.isnot(None), Customer.phone != "")
            .order_by(Customer.id)
            .all()
        )

class EmployeeRepository(Repository[Employee]):
    model = Employee

class SupplierRepository(Repository[Supplier]):
    model = Supplier
