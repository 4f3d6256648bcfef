"""Lead module public API."""

from .exceptions import LeadError, LeadNotFoundError
from .models import Lead, LeadCreateInput
from .service import LeadService

__all__ = ["Lead", "LeadCreateInput", "LeadService", "LeadError", "LeadNotFoundError"]
