"""
NuGet tool resolution.

Decides which NuGet binary runs the restore:

- no version requested: the NuGet shipped with Mono on the build machine
- "latest": nuget.exe from the distribution server's latest channel
- any other version: nuget.exe of exactly that release

Downloaded binaries are Windows executables, so they run through mono.

Example:
    >>> resolver = ToolResolver()
    >>> resolver.resolve("").args
    ('/Library/Frameworks/Mono.framework/Versions/Current/bin/nuget',)
    >>> resolver.resolve("6.9.1").args
    ('/Library/Frameworks/Mono.framework/Versions/Current/bin/mono',
     '/tmp/__nuget__x1y2/nuget.exe')
"""

import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from restorekit.core.download import download_file
from restorekit.core.exceptions import AcquisitionError
from restorekit.core.filesystem import FilesystemError, make_temp_dir
from restorekit.core.retry import DOWNLOAD_RETRY_POLICY, RetryPolicy, retry

logger = logging.getLogger(__name__)

LATEST_VERSION = "latest"

MONO_BIN_DIR = "/Library/Frameworks/Mono.framework/Versions/Current/bin"
SYSTEM_NUGET_PATH = f"{MONO_BIN_DIR}/nuget"
MONO_PATH = f"{MONO_BIN_DIR}/mono"

NUGET_DOWNLOAD_URL = "https://dist.nuget.org/win-x86-commandline/v{version}/{filename}"
NUGET_LATEST_URL = "https://dist.nuget.org/win-x86-commandline/latest/nuget.exe"

# Older releases are published as NuGet.exe
NUGET_FILENAMES = ("nuget.exe", "NuGet.exe")


@dataclass(frozen=True)
class ToolSettings:
    """
    Where the NuGet binaries live.

    Attributes:
        system_path: Pre-installed NuGet, used when no version is requested
        mono_path: Interpreter for downloaded nuget.exe
        download_url: Versioned URL template ({version}, optional {filename})
        latest_url: URL of the latest channel
    """

    system_path: str = SYSTEM_NUGET_PATH
    mono_path: str = MONO_PATH
    download_url: str = NUGET_DOWNLOAD_URL
    latest_url: str = NUGET_LATEST_URL


@dataclass(frozen=True)
class ToolInvocation:
    """Executable prefix of the restore command line."""

    args: Tuple[str, ...]

    def __post_init__(self):
        if not self.args:
            raise ValueError("Tool invocation cannot be empty")

    def command_for(self, solution_path) -> List[str]:
        """Full restore argument vector for solution_path."""
        return [*self.args, "restore", str(solution_path)]

    def __str__(self) -> str:
        return " ".join(self.args)


def build_download_urls(version: str, settings: Optional[ToolSettings] = None) -> List[str]:
    """
    Candidate download URLs for version, one per attempt.

    Args:
        version: "latest" or an explicit version such as "6.9.1"
        settings: Tool settings (defaults if None)

    Returns:
        Non-empty list of URLs, without duplicates

    Example:
        >>> build_download_urls("3.4.4")
        ['https://dist.nuget.org/win-x86-commandline/v3.4.4/nuget.exe',
         'https://dist.nuget.org/win-x86-commandline/v3.4.4/NuGet.exe']
    """
    if not version:
        raise ValueError("Version cannot be empty")

    settings = settings or ToolSettings()

    if version == LATEST_VERSION:
        return [settings.latest_url]

    urls: List[str] = []
    for filename in NUGET_FILENAMES:
        url = settings.download_url.format(version=version, filename=filename)
        if url not in urls:
            urls.append(url)
    return urls


class ToolResolver:
    """
    Resolve the NuGet invocation for a requested version.

    Attributes:
        settings: Tool locations and URLs
        policy: Retry policy for the download
        update_in_place: For "latest", update the system NuGet with
            ``sudo nuget update -self`` instead of downloading
    """

    def __init__(
        self,
        settings: Optional[ToolSettings] = None,
        policy: RetryPolicy = DOWNLOAD_RETRY_POLICY,
        download: Callable[[str, Path], Path] = download_file,
        temp_dir_factory: Callable[[str], Path] = make_temp_dir,
        sleep: Callable[[float], None] = time.sleep,
        update_in_place: bool = False,
    ):
        self.settings = settings or ToolSettings()
        self.policy = policy
        self.update_in_place = update_in_place
        self._download = download
        self._temp_dir_factory = temp_dir_factory
        self._sleep = sleep

    def system_invocation(self) -> ToolInvocation:
        return ToolInvocation((self.settings.system_path,))

    def resolve(self, requested_version: str) -> ToolInvocation:
        """
        Resolve the invocation prefix for requested_version.

        Args:
            requested_version: "", "latest" or an explicit version

        Returns:
            ToolInvocation to run restore with

        Raises:
            AcquisitionError: If the requested version could not be obtained
        """
        if not requested_version:
            logger.debug("No NuGet version requested, using the installed one")
            return self.system_invocation()

        if requested_version == LATEST_VERSION and self.update_in_place:
            return self._update_system_nuget()

        return self._download_nuget(requested_version)

    def _download_nuget(self, version: str) -> ToolInvocation:
        logger.info(f"Downloading NuGet {version} version...")

        try:
            tmp_dir = self._temp_dir_factory("__nuget__")
        except FilesystemError as e:
            raise AcquisitionError(version, str(e)) from e

        destination = tmp_dir / "nuget.exe"
        urls = build_download_urls(version, self.settings)

        def attempt_download(attempt: int) -> Path:
            url = urls[min(attempt, len(urls) - 1)]
            logger.info(f"Download URL: {url}")
            return self._download(url, destination)

        try:
            nuget_exe = retry(self.policy, attempt_download, sleep=self._sleep)
        except Exception as e:
            raise AcquisitionError(version, str(e)) from e

        logger.info(f"Downloaded NuGet {version} to {nuget_exe}")
        return ToolInvocation((self.settings.mono_path, str(nuget_exe)))

    def _update_system_nuget(self) -> ToolInvocation:
        logger.info("Updating NuGet to latest version...")

        cmd = ["sudo", self.settings.system_path, "update", "-self"]
        logger.info(f"$ {format_command(cmd)}")

        try:
            result = subprocess.run(cmd)
        except OSError as e:
            raise AcquisitionError(LATEST_VERSION, f"failed to run update: {e}") from e

        if result.returncode != 0:
            raise AcquisitionError(
                LATEST_VERSION, f"update exited with code {result.returncode}"
            )

        return self.system_invocation()


def format_command(cmd: Sequence[str]) -> str:
    """Printable form of an argument vector, quoting arguments with spaces."""
    return " ".join(f'"{arg}"' if " " in arg else arg for arg in cmd)
