"""
Package bundle generator service for types-publisher.

Writes the publishable bundle of each typings package:
package.json, types-metadata.json, README.md and the definition files
(with relative ``reference path`` directives rewritten to ``reference types``).
Retired (not-needed) packages get a stub package.json and README.md.
"""

import json
import logging
import re
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Iterable, List, Optional

from ..config import Options
from ..domain.operation import OperationStatus, OperationSummary, PackageGenerationResult
from ..infra.file_writer import empty_dir, read_json, write_file
from ..typings import NotNeededPackage, TypingsData, Versions

logger = logging.getLogger(__name__)

# Fields a typings package may supply in its own partial package.json
ALLOWED_PACKAGE_JSON_FIELDS = ("dependencies", "description")

REFERENCE_PATH_TO_LIBRARY = re.compile(r'/// <reference path="\.\./(\w.+)/.+"', re.MULTILINE)


def patch_definition_file(content: str) -> str:
    """Turn ``/// <reference path="../foo/index.d.ts"`` into ``/// <reference types="foo"``."""
    return REFERENCE_PATH_TO_LIBRARY.sub(r'/// <reference types="\1"', content)


def version_string(typing: TypingsData, version: int, options: Options) -> str:
    if options.prerelease_tag:
        return f"{version}-{options.prerelease_tag}"
    return f"{typing.library_major_version}.{typing.library_minor_version}.{version}"


def add_inferred_dependencies(
    dependencies: Dict[str, str],
    typing: TypingsData,
    available_types: Dict[str, TypingsData],
    version: int,
    options: Options,
) -> None:
    """
    Add a dependency on every known typings package ``typing`` refers to.

    Dependencies already declared are left alone, and names we have no
    typings for (e.g. "http", provided by node) are ignored.
    """
    for dep in [*typing.module_dependencies, *typing.library_dependencies]:
        full_name = options.full_package_name(dep)
        if dep in dependencies or full_name in dependencies or dep not in available_types:
            continue

        dep_typing = available_types[dep]
        # In a prerelease we can only reference exact packages
        patch = f"{version}-{options.prerelease_tag}" if options.prerelease_tag else "*"
        dependencies[full_name] = f"{dep_typing.library_major_version}.{dep_typing.library_minor_version}.{patch}"


def create_package_json(
    typing: TypingsData,
    version: int,
    available_types: Dict[str, TypingsData],
    options: Options,
) -> str:
    # The typing may provide a partial package.json for us to complete
    pkg_path = Path(typing.root) / "package.json"
    pkg: Dict[str, Any] = read_json(pkg_path) if typing.has_package_json else {}

    ignored = [name for name in pkg if name not in ALLOWED_PACKAGE_JSON_FIELDS]
    if ignored:
        raise ValueError(f"Ignored field in {pkg_path}: {ignored[0]}")

    dependencies = dict(pkg.get("dependencies") or {})
    add_inferred_dependencies(dependencies, typing, available_types, version, options)

    description = pkg.get("description") or f"TypeScript definitions for {typing.library_name}"

    # Field order follows https://docs.npmjs.com/files/package.json
    out = {
        "name": options.full_package_name(typing.typings_package_name),
        "version": version_string(typing, version, options),
        "description": description,
        "license": "MIT",
        "author": typing.authors,
        "main": "",
        "repository": {
            "type": "git",
            "url": f"{typing.source_repo_url}.git",
        },
        "scripts": {},
        "dependencies": dependencies,
        "typings": typing.definition_filename,
    }
    return json.dumps(out, indent=4, ensure_ascii=False)


def create_metadata_json(typing: TypingsData) -> str:
    metadata = typing.to_dict()
    del metadata["root"]
    return json.dumps(metadata, indent=4, ensure_ascii=False)


def create_readme(typing: TypingsData, options: Options, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    full_name = options.full_package_name(typing.typings_package_name)

    def listing(items: List[str]) -> str:
        return ", ".join(items) if items else "none"

    lines = [
        "# Installation",
        f"> `npm install --save {full_name}`",
        "",
        "# Summary",
    ]
    if typing.project_name:
        lines.append(f"This package contains type definitions for {typing.library_name} ({typing.project_name}).")
    else:
        lines.append(f"This package contains type definitions for {typing.library_name}.")
    lines += [
        "",
        "# Details",
        f"Files were exported from {typing.source_repo_url}/tree/{typing.source_branch}/{typing.typings_package_name}",
        "",
        "Additional Details",
        f" * Last updated: {format_datetime(now.astimezone(timezone.utc), usegmt=True)}",
        f" * File structure: {typing.kind}",
        f" * Library Dependencies: {listing(typing.library_dependencies)}",
        f" * Module Dependencies: {listing(typing.module_dependencies)}",
        f" * Global values: {listing(typing.globals)}",
        "",
    ]
    if typing.authors:
        lines += [
            "# Credits",
            f"These definitions were written by {typing.authors}.",
            "",
        ]
    return "\r\n".join(lines)


def create_not_needed_package_json(pkg: NotNeededPackage, options: Options) -> str:
    return json.dumps({
        "name": options.full_package_name(pkg.typings_package_name),
        "version": "0.0.0",
        "description": f"Stub TypeScript definitions entry for {pkg.library_name}, which provides its own types definitions",
        "main": "",
        "scripts": {},
        "author": "",
        "repository": pkg.source_repo_url,
        "license": "MIT",
        # No "typings": the library provides them
        "dependencies": {
            pkg.typings_package_name: "*",
        },
    }, indent=4, ensure_ascii=False)


def not_needed_readme(pkg: NotNeededPackage, options: Options) -> str:
    return (
        f"This is a stub types definition for {pkg.library_name} ({pkg.source_repo_url}).\n"
        f"{pkg.library_name} provides its own type definitions, "
        f"so you don't need {options.full_package_name(pkg.typings_package_name)} installed!"
    )


def generate_package(
    typing: TypingsData,
    available_types: Dict[str, TypingsData],
    versions: Versions,
    options: Options,
    now: Optional[datetime] = None,
) -> PackageGenerationResult:
    """Generate the bundle of one typings package under ``options.output_dir``."""
    log: List[str] = []
    output_dir = options.output_dir / typing.typings_package_name

    log.append(f"Clear output path {output_dir}")
    empty_dir(output_dir)

    log.append("Generate package.json, types-metadata.json, and README.md")
    outputs = {
        "package.json": create_package_json(typing, versions.get_version(typing), available_types, options),
        "types-metadata.json": create_metadata_json(typing),
        "README.md": create_readme(typing, options, now),
    }
    for filename in typing.files:
        log.append(f"Copy and patch {filename}")
        source = Path(typing.root) / filename
        outputs[filename] = patch_definition_file(source.read_text(encoding='utf-8'))

    log.append("Write metadata files to disk")
    for filename, content in outputs.items():
        write_file(output_dir / filename, content)

    return PackageGenerationResult(
        package_name=typing.typings_package_name,
        status=OperationStatus.SUCCESS,
        action="generated",
        output_dir=str(output_dir),
        files=list(outputs),
        log=log,
    )


def generate_not_needed_package(pkg: NotNeededPackage, options: Options) -> PackageGenerationResult:
    """Generate the stub bundle of a retired typings package."""
    output_dir = options.output_dir / pkg.typings_package_name
    log = [f"Clear output path {output_dir}"]
    empty_dir(output_dir)

    log.append("Generate package.json and README.md")
    write_file(output_dir / "package.json", create_not_needed_package_json(pkg, options))
    write_file(output_dir / "README.md", not_needed_readme(pkg, options))
    # Not-needed packages never change version

    return PackageGenerationResult(
        package_name=pkg.typings_package_name,
        status=OperationStatus.SUCCESS,
        action="generated_stub",
        output_dir=str(output_dir),
        files=["package.json", "README.md"],
        log=log,
    )


class PackageGeneratorService:
    """
    Generates bundles for many packages, collecting a summary.

    Example:
        service = PackageGeneratorService(options)
        for progress in service.generate(typings, not_needed, versions):
            print(progress)

        result = service.last_result
        print(f"Generated {result.successful} packages")
    """

    def __init__(self, options: Options, now: Optional[Callable[[], datetime]] = None):
        self.options = options
        self.now = now or (lambda: datetime.now(timezone.utc))
        self.last_result: Optional[OperationSummary] = None

    def generate(
        self,
        typings: Iterable[TypingsData],
        not_needed: Iterable[NotNeededPackage],
        versions: Versions,
        available_types: Optional[Dict[str, TypingsData]] = None,
    ) -> Generator[str, None, OperationSummary]:
        """
        Generate every package in ``typings`` and ``not_needed``.

        A failure in one package is recorded and does not stop the others.

        Yields:
            Progress messages

        Returns:
            OperationSummary with results
        """
        typings = list(typings)
        if available_types is None:
            available_types = {typing.typings_package_name: typing for typing in typings}
        result = OperationSummary(operation="generate_packages")
        self.last_result = result

        for typing in typings:
            try:
                detail = generate_package(typing, available_types, versions, self.options, self.now())
                yield f"Generated {self.options.full_package_name(typing.typings_package_name)}"
            except (OSError, ValueError) as e:
                logger.error(f"Failed to generate {typing.typings_package_name}: {e}")
                detail = PackageGenerationResult(
                    package_name=typing.typings_package_name,
                    status=OperationStatus.FAILED,
                    action="generation_failed",
                    error=str(e),
                )
                yield f"Error generating {typing.typings_package_name}: {e}"
            result.add_detail(detail)

        for pkg in not_needed:
            try:
                detail = generate_not_needed_package(pkg, self.options)
                yield f"Generated stub {self.options.full_package_name(pkg.typings_package_name)}"
            except OSError as e:
                logger.error(f"Failed to generate {pkg.typings_package_name}: {e}")
                detail = PackageGenerationResult(
                    package_name=pkg.typings_package_name,
                    status=OperationStatus.FAILED,
                    action="generation_failed",
                    error=str(e),
                )
                yield f"Error generating {pkg.typings_package_name}: {e}"
            result.add_detail(detail)

        return result
