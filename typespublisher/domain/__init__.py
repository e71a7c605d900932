"""
Domain layer for types-publisher.

Contains pure domain objects with no I/O or side effects:
- RegistrySnapshot: package name to filtered distribution tags
- SemanticVersion: npm version with semver precedence
- PublishedState: the registry's view of the last types-registry publish
- filter_tags: drops tags that merely alias "latest"
- OperationSummary: results of bulk package generation
"""

from .operation import OperationStatus, OperationSummary, PackageGenerationResult
from .registry import (
    LATEST_TAG,
    NEXT_TAG,
    PublishedState,
    RegistrySnapshot,
    SemanticVersion,
    TagSet,
    compute_hash,
    filter_tags,
)

__all__ = [
    'OperationStatus',
    'OperationSummary',
    'PackageGenerationResult',
    'LATEST_TAG',
    'NEXT_TAG',
    'PublishedState',
    'RegistrySnapshot',
    'SemanticVersion',
    'TagSet',
    'compute_hash',
    'filter_tags',
]
