"""
Operation result domain objects for types-publisher.

Provides standardized result types for bulk operations that generate
package bundles.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


class OperationStatus(Enum):
    """Status of an individual operation."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class PackageGenerationResult:
    """
    Details of generating one package bundle.

    Used to track what happened to each package during bulk generation.
    """
    package_name: str
    status: OperationStatus
    action: str  # e.g., "generated", "generated_stub", "generation_failed"
    output_dir: Optional[str] = None
    files: List[str] = field(default_factory=list)
    log: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'name': self.package_name,
            'status': self.status.value,
            'action': self.action,
        }
        if self.output_dir:
            result['output_dir'] = self.output_dir
        if self.files:
            result['files'] = self.files
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class OperationSummary:
    """
    Summary of a bulk operation across many packages.
    """
    operation: str  # e.g., "generate_packages"
    total: int = 0
    successful: int = 0
    skipped: int = 0
    failed: int = 0
    details: List[PackageGenerationResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no failures occurred."""
        return self.failed == 0

    def add_detail(self, detail: PackageGenerationResult) -> None:
        """Add an operation detail and update counts."""
        self.details.append(detail)
        self.total += 1

        if detail.status == OperationStatus.SUCCESS:
            self.successful += 1
        elif detail.status == OperationStatus.SKIPPED:
            self.skipped += 1
        elif detail.status == OperationStatus.FAILED:
            self.failed += 1
            if detail.error:
                self.errors.append(f"{detail.package_name}: {detail.error}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'type': 'summary',
            'operation': self.operation,
            'total': self.total,
            'successful': self.successful,
            'skipped': self.skipped,
            'failed': self.failed,
            'errors': self.errors,
        }
