from fastapi import APIRouter, Depends, Query, Response
from crm_service.api.deps import (
    Pagination,
    get_customer_mapper,
    get_customer_service,
    get_employee_service,
    get_supplier_service,
)
from crm_service.application.mapper import CustomerMapper
from crm_service.application.service import CustomerService, EmployeeService, SupplierService
from crm_service.application.schemas import (
    CountResponse,
    CustomerCreate,
    CustomerPage,
    CustomerResponse,
    CustomerUpdate,
    EmployeeCreate,
    EmployeeRead,
    ExistsResponse,
    SupplierCreate,
    SupplierRead,
)
from crm_service.application.validation import (
    ensure_valid,
    validate_customer_create,
    validate_customer_update,
    validate_employee_create,
    validate_supplier_create,
)
from crm_service.core.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])

# Fixed paths are declared before /{customer_id} so they are matched first

@router.post("", response_model=CustomerResponse, status_code=201)
def create_customer(
    payload: CustomerCreate,
    service: CustomerService = Depends(get_customer_service),
    mapper: CustomerMapper = Depends(get_customer_mapper),
):
    ensure_valid(validate_customer_create(payload))
    return mapper.to_response(service.create(payload))

@router.get("", response_model=list[CustomerResponse])
def list_customers(
    include_inactive: bool = Query(False, alias="includeInactive"),
    service: CustomerService = Depends(get_customer_service),
    mapper: CustomerMapper = Depends(get_customer_mapper),
):
    """List customers; soft-deleted ones only when includeInactive is set"""
    customers = mapper.to_response_list(service.list(include_inactive=include_inactive))
    logger.debug(f"Returning {len(customers)} customers")
    return customers

@router.get("/paged", response_model=CustomerPage)
def page_customers(
    pagination: Pagination = Depends(),
    service: CustomerService = Depends(get_customer_service),
    mapper: CustomerMapper = Depends(get_customer_mapper),
):
    items, total = service.page(pagination.skip, pagination.limit)
    return CustomerPage(items=mapper.to_response_list(items), total=total,
                        skip=pagination.skip, limit=pagination.limit)

@router.get("/search", response_model=CustomerPage)
def search_customers(
    q: str = Query("", max_length=100, description="Matched against first name, last name and email"),
    pagination: Pagination = Depends(),
    service: CustomerService = Depends(get_customer_service),
    mapper: CustomerMapper = Depends(get_customer_mapper),
):
    items, total = service.search(q, pagination.skip, pagination.limit)
    return CustomerPage(items=mapper.to_response_list(items), total=total,
                        skip=pagination.skip, limit=pagination.limit)

@router.get("/exists", response_model=ExistsResponse)
def customer_exists(email: str = Query(..., max_length=100), service: CustomerService = Depends(get_customer_service)):
    return ExistsResponse(exists=service.exists_by_email(email))

@router.get("/count", response_model=CountResponse)
def count_customers(service: CustomerService = Depends(get_customer_service)):
    return CountResponse(count=service.count_active())

@router.get("/recent", response_model=list[CustomerResponse])
def recent_customers(
    limit: int = Query(10, ge=1, le=100),
    service: CustomerService = Depends(get_customer_service),
    mapper: CustomerMapper = Depends(get_customer_mapper),
):
    return mapper.to_response_list(service.recent(limit))

@router.get("/with-phone", response_model=list[CustomerResponse])
def customers_with_phone(
    service: CustomerService = Depends(get_customer_service),
    mapper: CustomerMapper = Depends(get_customer_mapper),
):
    return mapper.to_response_list(service.with_valid_phone())

@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
    mapper: CustomerMapper = Depends(get_customer_mapper),
):
    return mapper.to_response(service.get(customer_id))

@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    service: CustomerService = Depends(get_customer_service),
    mapper: CustomerMapper = Depends(get_customer_mapper),
):
    ensure_valid(validate_customer_update(payload))
    return mapper.to_response(service.update(customer_id, payload))

@router.delete("/{customer_id}", status_code=204)
def delete_customer(customer_id: int, service: CustomerService = Depends(get_customer_service)):
    service.delete(customer_id)
    return Response(status_code=204)

@router.patch("/{customer_id}/toggle-status", response_model=CustomerResponse)
def toggle_customer_status(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
    mapper: CustomerMapper = Depends(get_customer_mapper),
):
    return mapper.to_response(service.toggle_status(customer_id))

employees_router = APIRouter(prefix="/employees", tags=["employees"])

@employees_router.get("", response_model=list[EmployeeRead])
def list_employees(service: EmployeeService = Depends(get_employee_service)):
    return service.list()

@employees_router.get("/{employee_id}", response_model=EmployeeRead)
def get_employee(employee_id: int, service: EmployeeService = Depends(get_employee_service)):
    return service.get(employee_id)

@employees_router.post("", response_model=EmployeeRead, status_code=201)
def create_employee(payload: EmployeeCreate, service: EmployeeService = Depends(get_employee_service)):
    ensure_valid(validate_employee_create(payload))
    return service.create(payload)

@employees_router.delete("/{employee_id}", status_code=204)
def delete_employee(employee_id: int, service: EmployeeService = Depends(get_employee_service)):
    service.delete(employee_id)
    return Response(status_code=204)

suppliers_router = APIRouter(prefix="/suppliers", tags=["suppliers"])

@suppliers_router.get("", response_model=list[SupplierRead])
def list_suppliers(service: SupplierService = Depends(get_supplier_service)):
    return service.list()

@suppliers_router.get("/{supplier_id}", response_model=SupplierRead)
def get_supplier(supplier_id: int, service: SupplierService = Depends(get_supplier_service)):
    return service.get(supplier_id)

@suppliers_router.post("", response_model=SupplierRead, status_code=201)
def create_supplier(payload: SupplierCreate, service: SupplierService = Depends(get_supplier_service)):
    ensure_valid(validate_supplier_create(payload))
    return service.create(payload)

@suppliers_router.delete("/{supplier_id}", status_code=204)
def delete_supplier(supplier_id: int, service: SupplierService = Depends(get_supplier_service)):
    service.delete(supplier_id)
    return Response(status_code=204)
