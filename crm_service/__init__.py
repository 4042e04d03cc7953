"""CRM directory service: customers, employees and suppliers over HTTP."""

__version__ = "1.0.0"
