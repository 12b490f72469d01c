"""
Core Application - Infrastructure & Base Classes

This app contains infrastructure code shared by the domain apps:

- Generic, reusable base classes (no notification logic)
- Clear extension points for domain apps

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - NotFoundError: Resource not found
    - ExternalServiceError: Third-party service failures (mail transport)

Views (import from core.views):
    - health_check: Liveness/readiness probe

Usage:
    from core.models import BaseModel
    from core.services import BaseService, ServiceResult
    from core.exceptions import ExternalServiceError

    class PreferenceService(BaseService):
        @classmethod
        def set_preference(cls, user, event_code, email_enabled):
            ...
            return ServiceResult.success(pref)

Note:
    - Business logic should NOT go here. Extend core classes in your domain apps.
    - For domain-specific protocols (email, publishers), see toolkit.protocols
    - For domain-specific helpers (PII masking), see toolkit.helpers
    - Django models are NOT imported here to avoid AppRegistryNotReady
      errors. Import them directly from their modules.
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "ExternalServiceError",
]
