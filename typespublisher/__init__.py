"""
types-publisher - Generate and publish the @types packages.

Quick Start:
    from typespublisher import Options, RegistryPublisher, RegistryFetcher, NpmClient

    options = Options.defaults()
    publisher = RegistryPublisher(options, RegistryFetcher.from_options(options), NpmClient())
    outcome = publisher.run(dry_run=True)
    print(outcome.action)

Domain Objects:
    RegistrySnapshot - package name to filtered distribution tags
    PublishedState - what the registry holds for types-registry

Services:
    RegistryPublisher - decides, publishes and validates types-registry
    PackageGeneratorService - writes per-package bundles
"""

__version__ = "0.1.0"

from .config import Options, load_config
from .domain import PublishedState, RegistrySnapshot, filter_tags
from .infra import NpmClient, RegistryFetcher
from .services import (
    PackageGeneratorService,
    PublishOutcome,
    RegistryAction,
    RegistryPublisher,
    build_snapshot,
)

__all__ = [
    "__version__",
    "Options",
    "load_config",
    "PublishedState",
    "RegistrySnapshot",
    "filter_tags",
    "NpmClient",
    "RegistryFetcher",
    "PackageGeneratorService",
    "PublishOutcome",
    "RegistryAction",
    "RegistryPublisher",
    "build_snapshot",
]
