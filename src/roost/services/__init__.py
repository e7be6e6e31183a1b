"""Service container and factory contract."""

from roost.services.container import (
    FRAMEWORK_FACTORIES,
    NON_CACHEABLE,
    ScopedContainer,
    ServiceContainer,
    ServiceDescriptor,
    ServiceFactory,
    ServiceKind,
    validate_application_services,
)

__all__ = [
    "FRAMEWORK_FACTORIES",
    "NON_CACHEABLE",
    "ScopedContainer",
    "ServiceContainer",
    "ServiceDescriptor",
    "ServiceFactory",
    "ServiceKind",
    "validate_application_services",
]
