"""
Infrastructure layer for types-publisher.

Contains abstractions for external systems:
- RegistryFetcher: npm registry package documents (HTTP)
- NpmClient: npm command execution (publish, dist-tag, install)
- file_writer: file output for generated bundles

These provide clean interfaces that can be mocked for testing.
"""

from .registry_fetcher import RegistryFetcher, escape_package_name
from .npm_client import NpmClient, NpmResult
from .file_writer import write_file, write_json, read_json, empty_dir

__all__ = [
    'RegistryFetcher',
    'escape_package_name',
    'NpmClient',
    'NpmResult',
    'write_file',
    'write_json',
    'read_json',
    'empty_dir',
]
