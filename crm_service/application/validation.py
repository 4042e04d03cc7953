"""Field validation for inbound payloads.

Each validator returns a list of ``(field, message)`` pairs, empty when the
payload is acceptable. Routes call them before any service logic runs and
turn a non-empty result into a 400 via :func:`ensure_valid`.
"""
import re
from typing import List, Optional, Tuple
from email_validator import EmailNotValidError, validate_email
from .errors import RequestValidationFailed
from .schemas import CustomerCreate, CustomerUpdate, EmployeeCreate, SupplierCreate

FieldError = Tuple[str, str]

# International number: optional +, no leading zero, up to 15 digits
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")

NAME_MIN, NAME_MAX = 2, 50
EMAIL_MAX = 100
ADDRESS_MAX = 200
POSITION_MAX = 100
SUPPLIER_NAME_MAX = 100

def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()

def is_valid_phone(value: Optional[str]) -> bool:
    return value is not None and PHONE_PATTERN.match(value.strip()) is not None

def _check_required(errors: List[FieldError], field: str, label: str, value: Optional[str]) -> bool:
    if is_blank(value):
        errors.append((field, f"{label} is required"))
        return False
    return True

def _check_size(errors, field, label, value, min_len, max_len):
    size = len(value.strip())
    if size < min_len or size > max_len:
        errors.append((field, f"{label} must be between {min_len} and {max_len} characters"))

def _check_max(errors, field, label, value, max_len):
    if len(value.strip()) > max_len:
        errors.append((field, f"{label} must not exceed {max_len} characters"))

def _check_email(errors, field, value):
    candidate = value.strip()
    if len(candidate) > EMAIL_MAX:
        errors.append((field, f"Email must not exceed {EMAIL_MAX} characters"))
        return
    try:
        # Syntax only: no DNS lookup, and .test domains are allowed
        validate_email(candidate, check_deliverability=False,
                       globally_deliverable=False, test_environment=True)
    except EmailNotValidError:
        errors.append((field, "Invalid email format"))

def _check_phone(errors, field, value):
    if not is_valid_phone(value):
        errors.append((field, "Invalid phone format"))

def validate_customer_create(data: CustomerCreate) -> List[FieldError]:
    errors: List[FieldError] = []
    if _check_required(errors, "firstname", "Firstname", data.firstname):
        _check_size(errors, "firstname", "Firstname", data.firstname, NAME_MIN, NAME_MAX)
    if _check_required(errors, "lastname", "Lastname", data.lastname):
        _check_size(errors, "lastname", "Lastname", data.lastname, NAME_MIN, NAME_MAX)
    if _check_required(errors, "email", "Email", data.email):
        _check_email(errors, "email", data.email)
    # Blank optional fields are dropped by the mapper, so only check real values
    if not is_blank(data.phone):
        _check_phone(errors, "phone", data.phone)
    if not is_blank(data.address):
        _check_max(errors, "address", "Address", data.address, ADDRESS_MAX)
    return errors

def validate_customer_update(data: CustomerUpdate) -> List[FieldError]:
    errors: List[FieldError] = []
    if not is_blank(data.firstname):
        _check_size(errors, "firstname", "Firstname", data.firstname, NAME_MIN, NAME_MAX)
    if not is_blank(data.lastname):
        _check_size(errors, "lastname", "Lastname", data.lastname, NAME_MIN, NAME_MAX)
    if not is_blank(data.email):
        _check_email(errors, "email", data.email)
    if not is_blank(data.phone):
        _check_phone(errors, "phone", data.phone)
    if not is_blank(data.address):
        _check_max(errors, "address", "Address", data.address, ADDRESS_MAX)
    return errors

def validate_employee_create(data: EmployeeCreate) -> List[FieldError]:
    errors: List[FieldError] = []
    if _check_required(errors, "firstname", "Firstname", data.firstname):
        _check_size(errors, "firstname", "Firstname", data.firstname, NAME_MIN, NAME_MAX)
    if _check_required(errors, "lastname", "Lastname", data.lastname):
        _check_size(errors, "lastname", "Lastname", data.lastname, NAME_MIN, NAME_MAX)
    if _check_required(errors, "email", "Email", data.email):
        _check_email(errors, "email", data.email)
    if not is_blank(data.position):
        _check_max(errors, "position", "Position", data.position, POSITION_MAX)
    if not is_blank(data.phone):
        _check_phone(errors, "phone", data.phone)
    return errors

def validate_supplier_create(data: SupplierCreate) -> List[FieldError]:
    errors: List[FieldError] = []
    if _check_required(errors, "name", "Name", data.name):
        _check_size(errors, "name", "Name", data.name, NAME_MIN, SUPPLIER_NAME_MAX)
    if not is_blank(data.email):
        _check_email(errors, "email", data.email)
    if not is_blank(data.phone):
        _check_phone(errors, "phone", data.phone)
    if not is_blank(data.address):
        _check_max(errors, "address", "Address", data.address, ADDRESS_MAX)
    return errors

def ensure_valid(errors: List[FieldError]) -> None:
    if errors:
        raise RequestValidationFailed(errors)
