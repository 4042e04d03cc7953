"""Domain exceptions raised by services and translated at the HTTP boundary."""
from typing import List, Tuple

class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class NotFoundError(ServiceError):
    """The referenced record does not exist or is not active."""
    status_code = 404

class BusinessRuleError(ServiceError):
    """A business rule rejected the operation, e.g. a duplicate active email."""
    status_code = 400

class RequestValidationFailed(ServiceError):
    status_code = 400

    def __init__(self, errors: List[Tuple[str, str]]):
        super().__init__("Validation failed")
        self.errors = errors

    @property
    def details(self) -> List[str]:
        return [f"{field}: {message}" for field, message in self.errors]
