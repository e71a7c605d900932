"""
Registry snapshot service for types-publisher.

Queries the registry for the distribution tags of every typings package
and assembles them into a RegistrySnapshot.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, Optional, Tuple

from ..config import Options
from ..domain.registry import RegistrySnapshot, TagSet, filter_tags
from ..typings import TypingsData

logger = logging.getLogger(__name__)


def fetch_tags(typing: TypingsData, fetcher, options: Options) -> Optional[TagSet]:
    """
    Filtered dist-tags of one typings package.

    Returns None for packages that were never published.
    """
    info = fetcher.fetch_npm_info(options.full_package_name(typing.typings_package_name))
    if not info:
        return None
    tags = info.get('dist-tags')
    if not tags:
        return None
    return filter_tags(tags)


def build_snapshot(typings: Iterable[TypingsData], fetcher, options: Options) -> RegistrySnapshot:
    """
    Build a snapshot of the registry for ``typings``.

    At most ``options.fetch_parallelism`` fetches are in flight at once.
    Unpublished packages are left out; any other fetch failure propagates.

    Args:
        typings: Packages to look up
        fetcher: Object with ``fetch_npm_info(name) -> dict | None``
        options: Scope and fan-out settings
    """
    typings = list(typings)
    entries: Dict[str, TagSet] = {}

    def fetch_one(typing: TypingsData) -> Tuple[str, Optional[TagSet]]:
        return typing.typings_package_name, fetch_tags(typing, fetcher, options)

    with ThreadPoolExecutor(max_workers=options.fetch_parallelism) as executor:
        futures = [executor.submit(fetch_one, typing) for typing in typings]

        for future in as_completed(futures):
            name, tags = future.result()
            if tags is None:
                logger.debug(f"{options.full_package_name(name)} is not published, skipping")
                continue
            entries[name] = tags

    logger.info(f"Registry snapshot: {len(entries)} of {len(typings)} packages published")
    return RegistrySnapshot(entries)
