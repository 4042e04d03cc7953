"""Composition root: builds mappers, repositories and services per request."""
from fastapi import Depends, Query, Request
from sqlalchemy.orm import Session
from crm_service.core_settings import get_settings
from crm_service.infrastructure.db import get_db
from crm_service.infrastructure.repositories import (
    CustomerRepository,
    EmployeeRepository,
    SupplierRepository,
)
from crm_service.application.mapper import CustomerMapper
from crm_service.application.service import CustomerService, EmployeeService, SupplierService

settings = get_settings()

# Stateless, shared by every request
customer_mapper = CustomerMapper()

def get_customer_mapper() -> CustomerMapper:
    return customer_mapper

def get_current_actor(request: Request) -> str:
    """Caller identity forwarded by the gateway, or the system actor."""
    actor = request.headers.get(settings.ACTOR_HEADER, "").strip()
    return actor[:50] or settings.SYSTEM_ACTOR

def get_customer_service(
    db: Session = Depends(get_db),
    mapper: CustomerMapper = Depends(get_customer_mapper),
    actor: str = Depends(get_current_actor),
) -> CustomerService:
    return CustomerService(CustomerRepository(db), mapper, actor=actor)

def get_employee_service(db: Session = Depends(get_db), actor: str = Depends(get_current_actor)) -> EmployeeService:
    return EmployeeService(EmployeeRepository(db), actor=actor)

def get_supplier_service(db: Session = Depends(get_db), actor: str = Depends(get_current_actor)) -> SupplierService:
    return SupplierService(SupplierRepository(db), actor=actor)

class Pagination:
    def __init__(
        self,
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE,
                           description="Maximum number of records to return"),
    ):
        self.skip = skip
        self.limit = limit
