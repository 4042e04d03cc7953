from typing import Iterable, List, Optional
from crm_service.domain.models import Customer
from .schemas import CustomerCreate, CustomerResponse, CustomerUpdate

def _clean(value: Optional[str]) -> Optional[str]:
    """Strip ``value``; blank or missing input becomes ``None``."""
    if value is None:
        return None
    value = value.strip()
    return value or None

def normalize_email(value: str) -> str:
    return value.strip().lower()

class CustomerMapper:
    """Translates between customer transfer shapes and the stored record.

    Audit fields are never touched here; CustomerService stamps them as
    part of each write.
    """

    def to_entity(self, data: Optional[CustomerCreate]) -> Optional[Customer]:
        if data is None:
            return None
        return Customer(
            firstname=data.firstname.strip(),
            lastname=data.lastname.strip(),
            email=normalize_email(data.email),
            phone=_clean(data.phone),
            address=_clean(data.address),
            active=True,
        )

    def update_entity(self, data: Optional[CustomerUpdate], customer: Optional[Customer]) -> None:
        """Merge the non-blank fields of ``data`` into ``customer`` in place.

        There is no way to clear phone or address through an update: a
        blank value is ignored like an absent one.
        """
        if data is None or customer is None:
            return
        firstname = _clean(data.firstname)
        if firstname is not None:
            customer.firstname = firstname
        lastname = _clean(data.lastname)
        if lastname is not None:
            customer.lastname = lastname
        email = _clean(data.email)
        if email is not None:
            customer.email = email.lower()
        phone = _clean(data.phone)
        if phone is not None:
            customer.phone = phone
        address = _clean(data.address)
        if address is not None:
            customer.address = address

    def to_response(self, customer: Optional[Customer]) -> Optional[CustomerResponse]:
        if customer is None:
            return None
        return CustomerResponse(
            id=customer.id,
            firstname=customer.firstname,
            lastname=customer.lastname,
            full_name=customer.full_name,
            email=customer.email,
            phone=customer.phone,
            address=customer.address,
            active=customer.active,
            created_at=customer.created_at,
            updated_at=customer.updated_at,
            created_by=customer.created_by,
            updated_by=customer.updated_by,
        )

    def to_response_list(self, customers: Optional[Iterable[Customer]]) -> List[CustomerResponse]:
        if customers is None:
            return []
        return [self.to_response(c) for c in customers]
