"""
types-registry publishing service.

Publishes ``types-registry``, a package whose ``index.json`` lists every
package in the ``@types`` scope with its interesting distribution tags.

Each run evaluates one of these actions:
- SKIP_RECENT: the last publish is less than a week old, do nothing
- PROMOTE_EXISTING: the last upload never reached "latest"; check it and tag it
- PUBLISH_NEW: the registry listing changed; publish, validate, then tag
- VALIDATE_ONLY: nothing changed; re-check what is installable

New uploads only reach "latest" after installing them from the registry
and comparing the installed files against the locally generated bundle.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..config import Options
from ..domain.registry import LATEST_TAG, NEXT_TAG, PublishedState, SemanticVersion
from ..exit_codes import DirectoryMismatch, PreconditionViolation, SubsetMismatch, ValidationMismatch
from ..infra.file_writer import empty_dir, read_json, write_file, write_json
from ..logs import RunLog
from ..typings import NotNeededPackage, TypingsData, read_not_needed_packages, read_typings
from ..utils import assert_directories_equal
from .registry_service import build_snapshot

logger = logging.getLogger(__name__)

PACKAGE_JSON = "package.json"
INDEX_JSON = "index.json"
README_MD = "README.md"
LOG_FILE = "publish-registry.md"

EXPECTED_MAJOR = 0
EXPECTED_MINOR = 1

# Time for the registry's read replicas to see a new upload
SETTLE_SECONDS = 20

REGISTRY_README = (
    "This package contains a listing of all packages published to the @types scope on NPM.\n"
    "Generated by [types-publisher](https://github.com/Microsoft/types-publisher)."
)


class RegistryAction(Enum):
    """What a publish-registry run does."""
    SKIP_RECENT = "skip_recent"
    PROMOTE_EXISTING = "promote_existing"
    PUBLISH_NEW = "publish_new"
    VALIDATE_ONLY = "validate_only"


def is_stale(last_modified: datetime, now: datetime, staleness_days: int = 7) -> bool:
    """True once ``last_modified`` is at least ``staleness_days`` old."""
    return now - last_modified >= timedelta(days=staleness_days)


def check_version_precondition(version: SemanticVersion) -> None:
    """
    Raise PreconditionViolation unless ``version`` is ``0.1.x``.

    Any other version was tagged by hand and can't be incremented safely.
    """
    if (version.major, version.minor) != (EXPECTED_MAJOR, EXPECTED_MINOR) or version.is_prerelease:
        raise PreconditionViolation(
            f"Published types-registry version {version} is not "
            f"{EXPECTED_MAJOR}.{EXPECTED_MINOR}.x; refusing to continue"
        )


def next_version(version: SemanticVersion) -> str:
    return f"{EXPECTED_MAJOR}.{EXPECTED_MINOR}.{version.patch + 1}"


def decide_action(state: PublishedState, new_content_hash: str) -> RegistryAction:
    """
    Choose between promoting, publishing and validating.

    The staleness guard is separate (see ``is_stale``); it runs before the
    snapshot is built.
    """
    if not state.was_promoted:
        # The last run uploaded but never tagged, e.g. it timed out validating
        return RegistryAction.PROMOTE_EXISTING
    if state.content_hash != new_content_hash:
        return RegistryAction.PUBLISH_NEW
    return RegistryAction.VALIDATE_ONLY


def generate_package_json(version: str, content_hash: str, options: Options) -> Dict[str, Any]:
    return {
        "name": options.registry_package_name,
        "version": version,
        "description": f"A registry of TypeScript declaration file packages published within the {options.scope} scope.",
        "repository": {
            "type": "git",
            "url": "https://github.com/Microsoft/types-publisher.git",
        },
        "keywords": [
            "TypeScript",
            "declaration",
            "files",
            "types",
            "packages",
        ],
        "author": "Microsoft Corp.",
        "license": "MIT",
        "typesPublisherContentHash": content_hash,
    }


def generate_registry_bundle(output_dir: Path, registry: str, package_json: Dict[str, Any]) -> None:
    """Replace ``output_dir`` with package.json, index.json and README.md."""
    empty_dir(output_dir)
    write_json(output_dir / PACKAGE_JSON, package_json)
    write_file(output_dir / INDEX_JSON, registry)
    write_file(output_dir / README_MD, REGISTRY_README)


class RegistryValidator:
    """
    Checks that the package installable from the registry matches the
    locally generated bundle.

    Example:
        validator = RegistryValidator(client, options)
        validator.validate()
    """

    def __init__(self, client, options: Options, tag: str = NEXT_TAG):
        self.client = client
        self.options = options
        self.tag = tag

    @property
    def installed_dir(self) -> Path:
        return self.options.validate_dir / "node_modules" / self.options.registry_package_name

    def install(self) -> Path:
        """Install ``<package>@<tag>`` into a fresh scratch directory."""
        validate_dir = empty_dir(self.options.validate_dir)
        write_json(validate_dir / PACKAGE_JSON, {
            "name": "validate",
            "version": "0.0.0",
            "description": "description",
            "readme": "",
            "license": "",
            "repository": {},
        })
        self.client.install(f"{self.options.registry_package_name}@{self.tag}", validate_dir)
        return self.installed_dir

    def validate(self) -> None:
        """
        Require the installed package to equal the bundle, apart from package.json.

        Raises:
            ValidationMismatch: with a diff of every difference
        """
        installed = self.install()
        try:
            assert_directories_equal(
                self.options.registry_output_dir, installed,
                ignore=lambda name: name == PACKAGE_JSON,
            )
        except DirectoryMismatch as e:
            raise ValidationMismatch(
                f"Installed {self.options.registry_package_name}@{self.tag} does not match the generated bundle",
                report=e.report,
            ) from e

    def validate_is_subset(self, not_needed: Iterable[NotNeededPackage]) -> None:
        """
        Require every installed index key to be generated locally or retired.

        Raises:
            ValidationMismatch: if files other than the index differ
            SubsetMismatch: naming the first unaccounted-for key
        """
        installed = self.install()
        try:
            assert_directories_equal(
                self.options.registry_output_dir, installed,
                ignore=lambda name: name in (PACKAGE_JSON, INDEX_JSON),
            )
        except DirectoryMismatch as e:
            raise ValidationMismatch(
                f"Installed {self.options.registry_package_name}@{self.tag} does not match the generated bundle",
                report=e.report,
            ) from e

        actual = read_json(installed / INDEX_JSON)
        expected = read_json(self.options.registry_output_dir / INDEX_JSON)
        retired = {pkg.name for pkg in not_needed}
        expected_entries = expected.get("entries", {})
        for key in actual.get("entries", {}):
            if key not in expected_entries and key not in retired:
                raise SubsetMismatch(key)


@dataclass
class RunPlan:
    """Everything computed before acting on a run's decision."""
    state: PublishedState
    action: RegistryAction
    content_hash: str
    new_version: str
    package_json: Dict[str, Any]
    dry_run: bool = False


@dataclass
class PublishOutcome:
    """Result of a publish-registry run."""
    action: RegistryAction
    old_version: str
    new_version: Optional[str] = None
    content_hash: Optional[str] = None
    published: bool = False
    tagged: Optional[str] = None      # version moved to "latest", if any
    validated: bool = False
    dry_run: bool = False
    messages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'action': self.action.value,
            'old_version': self.old_version,
            'published': self.published,
            'validated': self.validated,
            'dry_run': self.dry_run,
        }
        if self.new_version:
            result['new_version'] = self.new_version
        if self.content_hash:
            result['content_hash'] = self.content_hash
        if self.tagged:
            result['tagged'] = self.tagged
        return result


class RegistryPublisher:
    """
    Decides and carries out one publish-registry run.

    Collaborators are injected so the run can be exercised without a
    network or an npm install:
        fetcher: ``fetch_npm_info`` and ``fetch_published_state``
        client: ``publish``, ``tag`` and ``install``

    Example:
        publisher = RegistryPublisher(options, RegistryFetcher(), NpmClient(default_tag="next"))
        outcome = publisher.run(dry_run=True)
    """

    def __init__(
        self,
        options: Options,
        fetcher,
        client,
        now: Optional[Callable[[], datetime]] = None,
        sleep: Callable[[float], None] = time.sleep,
        typings_reader: Callable[[Path], List[TypingsData]] = read_typings,
        not_needed_reader: Callable[[Path], List[NotNeededPackage]] = read_not_needed_packages,
    ):
        self.options = options
        self.fetcher = fetcher
        self.client = client
        self.now = now or (lambda: datetime.now(timezone.utc))
        self.sleep = sleep
        self.typings_reader = typings_reader
        self.not_needed_reader = not_needed_reader
        self.validator = RegistryValidator(client, options)
        self.log = RunLog(logger)
        self._handlers = {
            RegistryAction.PROMOTE_EXISTING: self._promote_existing,
            RegistryAction.PUBLISH_NEW: self._publish_new,
            RegistryAction.VALIDATE_ONLY: self._validate_only,
        }

    @property
    def package_name(self) -> str:
        return self.options.registry_package_name

    def run(self, dry_run: bool = False) -> PublishOutcome:
        """
        Run the whole decide-and-validate sequence.

        Raises:
            PreconditionViolation, SubsetMismatch, ValidationMismatch,
            RegistryError or I/O errors; nothing is tagged after a failure
        """
        self.log = RunLog(logger)
        self.log(f"=== Publishing {self.package_name} ===")
        try:
            outcome = self._run(dry_run)
        except Exception as e:
            self.log(f"Failed: {type(e).__name__}: {e}")
            raise
        finally:
            try:
                self.log.write(self.options.logs_dir, LOG_FILE)
            except OSError as e:
                logger.error(f"Could not write {LOG_FILE}: {e}")
        outcome.messages = list(self.log.lines)
        return outcome

    def _run(self, dry_run: bool) -> PublishOutcome:
        state = self.fetcher.fetch_published_state(self.package_name)

        if not is_stale(state.last_modified, self.now(), self.options.staleness_days):
            self.log(f"Was modified less than {self.options.staleness_days} days ago, so do nothing.")
            return PublishOutcome(RegistryAction.SKIP_RECENT, old_version=str(state.version), dry_run=dry_run)

        check_version_precondition(state.version)

        plan = self.plan(state, dry_run)
        return self._handlers[plan.action](plan)

    def plan(self, state: PublishedState, dry_run: bool = False) -> RunPlan:
        """Build the snapshot, write the bundle and pick the action."""
        # Not-needed packages aren't listed in the registry
        typings = self.typings_reader(self.options.data_dir)
        snapshot = build_snapshot(typings, self.fetcher, self.options)
        registry = snapshot.serialize()
        content_hash = snapshot.content_hash()

        new_version = next_version(state.version)
        package_json = generate_package_json(new_version, content_hash, self.options)
        generate_registry_bundle(self.options.registry_output_dir, registry, package_json)

        return RunPlan(
            state=state,
            action=decide_action(state, content_hash),
            content_hash=content_hash,
            new_version=new_version,
            package_json=package_json,
            dry_run=dry_run,
        )

    def _promote_existing(self, plan: RunPlan) -> PublishOutcome:
        highest = str(plan.state.highest_version)
        self.log(f"Old version of {self.package_name} ({highest}) was never tagged {LATEST_TAG}, so updating")
        self.validator.validate_is_subset(self.not_needed_reader(self.options.data_dir))

        outcome = PublishOutcome(
            plan.action, old_version=str(plan.state.version), new_version=highest,
            content_hash=plan.content_hash, validated=True, dry_run=plan.dry_run,
        )
        if plan.dry_run:
            self.log(f"Dry run: not tagging {highest} as {LATEST_TAG}")
            return outcome

        self.client.tag(self.package_name, highest, LATEST_TAG)
        outcome.tagged = highest
        return outcome

    def _publish_new(self, plan: RunPlan) -> PublishOutcome:
        self.log("New packages have been added, so publishing a new registry.")
        self.client.publish(self.options.registry_output_dir, plan.package_json, plan.dry_run)

        outcome = PublishOutcome(
            plan.action, old_version=str(plan.state.version), new_version=plan.new_version,
            content_hash=plan.content_hash, published=True, dry_run=plan.dry_run,
        )
        if plan.dry_run:
            self.log(f"Dry run: skipping validation and not tagging {plan.new_version} as {LATEST_TAG}")
            return outcome

        self.log(f"Waiting {SETTLE_SECONDS}s for the registry to update")
        self.sleep(SETTLE_SECONDS)
        # Don't set it as "latest" until after it's been validated
        self.validator.validate()
        outcome.validated = True
        self.client.tag(self.package_name, plan.new_version, LATEST_TAG)
        outcome.tagged = plan.new_version
        return outcome

    def _validate_only(self, plan: RunPlan) -> PublishOutcome:
        self.log("No new packages published, so no need to publish new registry.")
        self.validator.validate()
        return PublishOutcome(
            plan.action, old_version=str(plan.state.version),
            content_hash=plan.content_hash, validated=True, dry_run=plan.dry_run,
        )
