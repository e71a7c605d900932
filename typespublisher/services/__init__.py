"""
Service layer for types-publisher.

Services orchestrate domain objects and infrastructure:
- registry_service: builds the registry snapshot with bounded fan-out
- publish_service: decides, publishes and validates types-registry
- package_generator: writes per-package bundles
"""

from .registry_service import build_snapshot
from .publish_service import (
    PublishOutcome,
    RegistryAction,
    RegistryPublisher,
    RegistryValidator,
    decide_action,
)
from .package_generator import PackageGeneratorService, generate_package, generate_not_needed_package

__all__ = [
    'build_snapshot',
    'PublishOutcome',
    'RegistryAction',
    'RegistryPublisher',
    'RegistryValidator',
    'decide_action',
    'PackageGeneratorService',
    'generate_package',
    'generate_not_needed_package',
]
