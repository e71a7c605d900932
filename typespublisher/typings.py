"""
Typings data source.

Reads the parsed typings data that earlier pipeline steps leave in the
data directory:
- typesData.json: one record per typings package, keyed by name
- notNeededPackages.json: packages whose library now ships its own types
- versions.json: the patch version each typings package is on
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import logger
from .infra.file_writer import read_json

TYPES_DATA_FILE = "typesData.json"
NOT_NEEDED_PACKAGES_FILE = "notNeededPackages.json"
VERSIONS_FILE = "versions.json"


@dataclass
class TypingsData:
    """Everything known about one typings package."""
    typings_package_name: str
    library_name: str
    library_major_version: int = 0
    library_minor_version: int = 0
    project_name: str = ""
    authors: str = ""
    source_repo_url: str = ""
    source_branch: str = "master"
    kind: str = ""
    definition_filename: str = "index.d.ts"
    library_dependencies: List[str] = field(default_factory=list)
    module_dependencies: List[str] = field(default_factory=list)
    globals: List[str] = field(default_factory=list)
    declared_modules: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    has_package_json: bool = False
    content_hash: str = ""
    root: str = ""

    @property
    def name(self) -> str:
        return self.typings_package_name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TypingsData':
        return cls(
            typings_package_name=data['typingsPackageName'],
            library_name=data.get('libraryName', data['typingsPackageName']),
            library_major_version=int(data.get('libraryMajorVersion', 0)),
            library_minor_version=int(data.get('libraryMinorVersion', 0)),
            project_name=data.get('projectName') or '',
            authors=data.get('authors') or '',
            source_repo_url=data.get('sourceRepoURL') or '',
            source_branch=data.get('sourceBranch') or 'master',
            kind=data.get('kind') or '',
            definition_filename=data.get('definitionFilename') or 'index.d.ts',
            library_dependencies=list(data.get('libraryDependencies', [])),
            module_dependencies=list(data.get('moduleDependencies', [])),
            globals=list(data.get('globals', [])),
            declared_modules=list(data.get('declaredModules', [])),
            files=list(data.get('files', [])),
            has_package_json=bool(data.get('hasPackageJson', False)),
            content_hash=data.get('contentHash') or '',
            root=data.get('root') or '',
        )

    def to_dict(self) -> Dict[str, Any]:
        """Camel-cased record, as it appears in typesData.json."""
        return {
            'authors': self.authors,
            'definitionFilename': self.definition_filename,
            'libraryDependencies': self.library_dependencies,
            'moduleDependencies': self.module_dependencies,
            'libraryMajorVersion': self.library_major_version,
            'libraryMinorVersion': self.library_minor_version,
            'libraryName': self.library_name,
            'typingsPackageName': self.typings_package_name,
            'projectName': self.project_name,
            'sourceRepoURL': self.source_repo_url,
            'sourceBranch': self.source_branch,
            'kind': self.kind,
            'globals': self.globals,
            'declaredModules': self.declared_modules,
            'files': self.files,
            'hasPackageJson': self.has_package_json,
            'contentHash': self.content_hash,
            'root': self.root,
        }


@dataclass
class NotNeededPackage:
    """A typings package retired because the library ships its own types."""
    typings_package_name: str
    library_name: str
    source_repo_url: str = ""

    @property
    def name(self) -> str:
        return self.typings_package_name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NotNeededPackage':
        return cls(
            typings_package_name=data['typingsPackageName'],
            library_name=data.get('libraryName', data['typingsPackageName']),
            source_repo_url=data.get('sourceRepoURL') or '',
        )


def read_typings(data_dir: Path) -> List[TypingsData]:
    """Read all typings records, ordered by package name."""
    path = Path(data_dir) / TYPES_DATA_FILE
    raw = read_json(path)
    typings = [TypingsData.from_dict(record) for _, record in sorted(raw.items())]
    logger.debug(f"Read {len(typings)} typings from {path}")
    return typings


def read_not_needed_packages(data_dir: Path) -> List[NotNeededPackage]:
    path = Path(data_dir) / NOT_NEEDED_PACKAGES_FILE
    if not path.exists():
        logger.debug(f"No {NOT_NEEDED_PACKAGES_FILE} in {data_dir}")
        return []
    raw = read_json(path)
    return [NotNeededPackage.from_dict(record) for record in raw.get('packages', [])]


class Versions:
    """Patch versions of typings packages, from versions.json."""

    def __init__(self, data: Optional[Dict[str, Dict[str, Any]]] = None):
        self.data = data or {}

    @classmethod
    def load(cls, data_dir: Path) -> 'Versions':
        path = Path(data_dir) / VERSIONS_FILE
        if not path.exists():
            return cls()
        return cls(read_json(path))

    def get_version(self, typing: TypingsData) -> int:
        entry = self.data.get(typing.typings_package_name)
        return int(entry.get('lastVersion', 0)) if entry else 0
