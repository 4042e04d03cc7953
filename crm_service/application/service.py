from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from crm_service.core.logging_config import get_logger
from crm_service.core_settings import get_settings
from crm_service.domain.models import AuditMixin, Customer, Employee, Supplier
from crm_service.infrastructure.repositories import (
    CustomerRepository,
    EmployeeRepository,
    Repository,
    SupplierRepository,
)
from .errors import BusinessRuleError, NotFoundError
from .mapper import CustomerMapper, normalize_email
from .schemas import CustomerCreate, CustomerUpdate, EmployeeCreate, SupplierCreate
from .validation import is_blank, is_valid_phone

logger = get_logger(__name__)


Clock = Callable[[], datetime]

class AuditedService:
    """Commit handling and audit stamping shared by the record services."""

    def __init__(self, repo: Repository, actor: Optional[str] = None, clock: Clock = datetime.now):
        self.repo = repo
        self.db = repo.db
        self.actor = actor or get_settings().SYSTEM_ACTOR
        self.clock = clock

    def _stamp_created(self, obj: AuditMixin) -> None:
        now = self.clock()
        obj.created_at = now
        obj.updated_at = now
        obj.created_by = self.actor
        obj.updated_by = self.actor

    def _touch(self, obj: AuditMixin) -> None:
        now = self.clock()
        # updated_at must advance on every write, even within one clock tick
        if obj.updated_at is not None and now <= obj.updated_at:
            now = obj.updated_at + timedelta(microseconds=1)
        obj.updated_at = now
        obj.updated_by = self.actor

    def _commit(self, obj):
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.error(f"Integrity violation while saving {type(obj).__name__}")
            raise
        self.db.refresh(obj)
        return obj

class CustomerService(AuditedService):
    repo: CustomerRepository

    def __init__(self, repo: CustomerRepository, mapper: CustomerMapper,
                 actor: Optional[str] = None, clock: Clock = datetime.now):
        super().__init__(repo, actor, clock)
        self.mapper = mapper

    def _not_found(self, customer_id: int) -> NotFoundError:
        return NotFoundError(f"Customer not found with id: {customer_id}")

    def _ensure_email_free(self, email: str, exclude_id: Optional[int] = None) -> None:
        if self.repo.exists_active_email(email, exclude_id=exclude_id):
            logger.warning(f"Attempt to use an email already held by an active customer: {email}")
            raise BusinessRuleError(f"Customer with email already exists: {email}")

    def create(self, data: CustomerCreate) -> Customer:
        email = normalize_email(data.email)
        logger.info(f"Creating customer with email: {email}")
        self._ensure_email_free(email)
        customer = self.mapper.to_entity(data)
        self._stamp_created(customer)
        self.repo.add(customer)
        self._commit(customer)
        logger.info(f"Customer created with id: {customer.id}")
        return customer

    def get(self, customer_id: int) -> Customer:
        customer = self.repo.get_active(customer_id)
        if customer is None:
            raise self._not_found(customer_id)
        return customer

    def list(self, include_inactive: bool = False) -> List[Customer]:
        if include_inactive:
            return self.repo.list()
        return self.repo.list_active()

    def page(self, skip: int, limit: int) -> Tuple[List[Customer], int]:
        return self.repo.page_active(skip, limit)

    def search(self, query: str, skip: int, limit: int) -> Tuple[List[Customer], int]:
        if is_blank(query):
            return self.repo.page_active(skip, limit)
        return self.repo.search_active(query.strip(), skip, limit)

    def update(self, customer_id: int, data: CustomerUpdate) -> Customer:
        customer = self.get(customer_id)
        if not is_blank(data.email):
            email = normalize_email(data.email)
            if email != customer.email:
                self._ensure_email_free(email, exclude_id=customer.id)
        self.mapper.update_entity(data, customer)
        self._touch(customer)
        self._commit(customer)
        logger.info(f"Customer updated with id: {customer.id}")
        return customer

    def delete(self, customer_id: int) -> None:
        """Soft delete: the row stays, flagged inactive."""
        customer = self.get(customer_id)
        customer.active = False
        self._touch(customer)
        self._commit(customer)
        logger.info(f"Customer deactivated with id: {customer.id}")

    def toggle_status(self, customer_id: int) -> Customer:
        customer = self.repo.get(customer_id)
        if customer is None:
            raise self._not_found(customer_id)
        if not customer.active:
            # Restoring must not create a second active holder of the email
            self._ensure_email_free(customer.email, exclude_id=customer.id)
        customer.active = not customer.active
        self._touch(customer)
        self._commit(customer)
        logger.info(f"Customer {customer.id} status set to active={customer.active}")
        return customer

    def exists_by_email(self, email: str) -> bool:
        if is_blank(email):
            return False
        return self.repo.exists_active_email(normalize_email(email))

    def with_valid_phone(self) -> List[Customer]:
        return [c for c in self.repo.active_with_phone() if is_valid_phone(c.phone)]

    def count_active(self) -> int:
        return self.repo.count_active()

    def recent(self, limit: int) -> List[Customer]:
        return self.repo.recent_active(limit)

def _optional(value: Optional[str]) -> Optional[str]:
    if is_blank(value):
        return None
    return value.strip()

class EmployeeService(AuditedService):
    repo: EmployeeRepository

    def list(self) -> List[Employee]:
        return self.repo.list()

    def get(self, employee_id: int) -> Employee:
        employee = self.repo.get(employee_id)
        if employee is None:
            raise NotFoundError(f"Employee not found with id: {employee_id}")
        return employee

    def create(self, data: EmployeeCreate) -> Employee:
        employee = Employee(
            firstname=data.firstname.strip(),
            lastname=data.lastname.strip(),
            email=normalize_email(data.email),
            position=_optional(data.position),
            phone=_optional(data.phone),
            active=True,
        )
        self._stamp_created(employee)
        self.repo.add(employee)
        self._commit(employee)
        logger.info(f"Employee created with id: {employee.id}")
        return employee

    def delete(self, employee_id: int) -> None:
        employee = self.get(employee_id)
        self.repo.delete(employee)
        self.db.commit()
        logger.info(f"Employee removed with id: {employee_id}")

class SupplierService(AuditedService):
    repo: SupplierRepository

    def list(self) -> List[Supplier]:
        return self.repo.list()

    def get(self, supplier_id: int) -> Supplier:
        supplier = self.repo.get(supplier_id)
        if supplier is None:
            raise NotFoundError(f"Supplier not found with id: {supplier_id}")
        return supplier

    def create(self, data: SupplierCreate) -> Supplier:
        email = _optional(data.email)
        supplier = Supplier(
            name=data.name.strip(),
            email=email.lower() if email else None,
            phone=_optional(data.phone),
            address=_optional(data.address),
            active=True,
        )
        self._stamp_created(supplier)
        self.repo.add(supplier)
        self._commit(supplier)
        logger.info(f"Supplier created with id: {supplier.id}")
        return supplier

    def delete(self, supplier_id: int) -> None:
        supplier = self.get(supplier_id)
        self.repo.delete(supplier)
        self.db.commit()
        logger.info(f"Supplier removed with id: {supplier_id}")
