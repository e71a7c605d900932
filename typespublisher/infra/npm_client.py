"""
npm client infrastructure for types-publisher.

Provides a clean abstraction over the npm command line.
All registry writes and installs go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from publishing logic
"""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

from ..exit_codes import RegistryError

logger = logging.getLogger(__name__)

# Keep installs quiet and reproducible; validation only needs the files
NPM_INSTALL_FLAGS = ["--no-audit", "--no-fund", "--no-save", "--no-package-lock", "--ignore-scripts"]


@dataclass
class NpmResult:
    """Output of one npm invocation."""
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


class NpmClient:
    """
    Abstraction over npm commands.

    Example:
        client = NpmClient(default_tag="next")
        client.publish(Path("output/types-registry"), manifest)
        client.tag("types-registry", "0.1.6", "latest")
    """

    def __init__(
        self,
        default_tag: str = "next",
        npm: str = "npm",
        registry_url: Optional[str] = None,
        timeout: int = 600,
    ):
        """
        Initialize NpmClient.

        Args:
            default_tag: Distribution tag new publishes land on
            npm: npm executable
            registry_url: Registry to talk to (npm's configured one if None)
            timeout: Command timeout in seconds
        """
        self.default_tag = default_tag
        self.npm = npm
        self.registry_url = registry_url
        self.timeout = timeout

    def _run(self, args: List[str], cwd: Optional[Union[str, Path]] = None) -> NpmResult:
        """
        Run an npm command.

        Raises:
            RegistryError: on a non-zero exit code or if npm cannot be started
        """
        cmd = [self.npm, *args]
        if self.registry_url:
            cmd += ["--registry", self.registry_url]

        logger.debug(f"Running {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise RegistryError(f"{' '.join(cmd)} failed: {e}") from e

        if result.returncode != 0:
            raise RegistryError(
                f"{' '.join(cmd)} exited with {result.returncode}: {result.stderr.strip()}"
            )

        return NpmResult(stdout=result.stdout, stderr=result.stderr, returncode=result.returncode)

    def publish(self, package_dir: Union[str, Path], manifest: Dict[str, Any], dry_run: bool = False) -> None:
        """
        Publish ``package_dir`` under the default tag.

        Args:
            package_dir: Directory containing the generated bundle
            manifest: The bundle's package.json content
            dry_run: Ask npm to go through the motions without uploading
        """
        name_at_version = f"{manifest['name']}@{manifest['version']}"
        args = ["publish", str(package_dir), "--tag", self.default_tag]
        if dry_run:
            args.append("--dry-run")
        self._run(args)
        logger.info(f"{'Dry-run published' if dry_run else 'Published'} {name_at_version} as {self.default_tag}")

    def tag(self, package_name: str, version: str, tag: str) -> None:
        """Point distribution tag ``tag`` at ``package_name@version``."""
        self._run(["dist-tag", "add", f"{package_name}@{version}", tag])
        logger.info(f"Tagged {package_name}@{version} as {tag}")

    def install(self, package_spec: str, cwd: Union[str, Path]) -> NpmResult:
        """
        Install ``package_spec`` into ``cwd``/node_modules.

        A zero exit code with output on stderr is reported as a warning;
        a non-zero exit code raises RegistryError.
        """
        result = self._run(["install", package_spec, *NPM_INSTALL_FLAGS], cwd=cwd)
        if result.stderr.strip():
            logger.warning(f"npm install {package_spec}: {result.stderr.strip()}")
        return result
