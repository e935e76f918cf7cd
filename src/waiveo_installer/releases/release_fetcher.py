import os
import re
import tarfile
import tempfile
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path

import httpx
import structlog
from pydantic import BaseModel, ConfigDict
from tqdm import tqdm

from waiveo_installer.config.models import InstallerConfig
from waiveo_installer.errors import DownloadError, VersionResolutionError
from waiveo_installer.system.models import Architecture
from waiveo_installer.system.path_resolver import PathResolver

logger = structlog.get_logger(__name__)

_TAG_PATTERN = re.compile(r"tag/(v[^\"'/?#&\s<>]+)")


def release_member_filter(member: tarfile.TarInfo, dest_path: str) -> tarfile.TarInfo:
    """Extraction filter for release archives.

    Applies the standard "tar" filter (no setuid bits, nothing outside the destination)
    and drops archive ownership so files belong to the extracting user. Symlinks with
    absolute targets (e.g. bin entries pointing into /opt/waiveo) are kept.
    """
    member = tarfile.tar_filter(member, dest_path)
    return member.replace(uid=None, gid=None, uname=None, gname=None, deep=False)


class ReleaseArtifact(BaseModel):
    """A downloaded release tarball, valid only while its temporary directory exists."""

    model_config = ConfigDict(frozen=True)

    version: str
    download_url: str
    local_tarball_path: Path


class ReleaseFetcher:
    """Resolves release versions and installs the release artifact."""

    def __init__(
        self,
        config: InstallerConfig,
        path_resolver: PathResolver,
        http_client: httpx.Client | None = None,
        temp_root: Path | None = None,
    ) -> None:
        self.config = config
        self.path_resolver = path_resolver
        self.http_client = http_client
        self.temp_root = temp_root

    def _client(self, timeout: float) -> AbstractContextManager[httpx.Client]:
        if self.http_client is not None:
            return nullcontext(self.http_client)
        return httpx.Client(timeout=timeout)

    def get_download_url(self, version: str) -> str:
        """Build the artifact URL for a release tag."""
        return f"{self.config.releases_url}/download/{version}/{self.config.artifact_name}"

    def resolve_version(self, requested: str) -> str:
        """Resolve 'latest' to a concrete release tag.

        The release index redirects /releases/latest to /releases/tag/<version>; the
        tag is taken from the final URL, or from the page body if not redirected.

        Args:
            requested: 'latest' or an explicit tag

        Returns:
            The release tag to install
        """
        if requested != "latest":
            return requested

        latest_url = f"{self.config.releases_url}/latest"
        try:
            with self._client(self.config.http_timeout) as client:
                response = client.get(latest_url, follow_redirects=True)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise VersionResolutionError(
                f"Could not determine latest version. Check your internet connection. ({e})"
            ) from e

        for candidate in (str(response.url), response.text):
            match = _TAG_PATTERN.search(candidate)
            if match:
                return match.group(1)
        raise VersionResolutionError(
            "Could not determine latest version. Check your internet connection."
        )

    def download_release(self, version: str, architecture: Architecture) -> ReleaseArtifact:
        """Download and extract a release.

        The tarball lives in a temporary directory that is removed before this method
        returns, whether or not the download and extraction succeed.

        Args:
            version: Resolved release tag
            architecture: Target architecture of the host

        Returns:
            The artifact that was installed
        """
        logger.info(f"Downloading Waiveo {version}...", architecture=str(architecture))
        url = self.get_download_url(version)

        with tempfile.TemporaryDirectory(prefix="waiveo-", dir=self.temp_root) as temp_dir:
            artifact = ReleaseArtifact(
                version=version,
                download_url=url,
                local_tarball_path=Path(temp_dir) / self.config.artifact_name,
            )
            self._download(artifact)
            self._prepare_directories()
            logger.info("Extracting files...")
            installed = self._extract(artifact.local_tarball_path)
            self._mark_executables(installed)

        logger.info("Files extracted successfully", status="ok")
        return artifact

    def _download(self, artifact: ReleaseArtifact) -> None:
        try:
            with self._client(self.config.download_timeout) as client:
                with client.stream("GET", artifact.download_url, follow_redirects=True) as response:
                    response.raise_for_status()
                    total_size = int(response.headers.get("content-length", 0))

                    with open(artifact.local_tarball_path, "wb") as f:
                        with tqdm(
                            total=total_size,
                            unit="B",
                            unit_scale=True,
                            unit_divisor=1024,
                            desc=f"  {self.config.artifact_name}",
                            disable=None,
                        ) as progress:
                            for chunk in response.iter_bytes(chunk_size=8192):
                                f.write(chunk)
                                progress.update(len(chunk))
        except httpx.HTTPError as e:
            raise DownloadError(
                f"Failed to download release from: {artifact.download_url} ({e})"
            ) from e

    def _prepare_directories(self) -> None:
        """Create the directory tree the artifact is extracted into."""
        for directory in (
            *self.path_resolver.get_install_subdirs(),
            self.path_resolver.bin_dir,
            self.path_resolver.systemd_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)

    def _extract(self, tarball: Path) -> list[Path]:
        """Extract the tarball relative to the filesystem root.

        Member paths mirror their absolute destinations (opt/waiveo/..., usr/local/bin/...).
        Archive ownership is dropped so files belong to the extracting process.

        Returns:
            Paths of the regular files that were installed
        """
        root = self.path_resolver.root_dir
        try:
            with tarfile.open(tarball, "r:gz") as tar:
                members = tar.getmembers()
                tar.extractall(root, filter=release_member_filter)
        except (tarfile.TarError, OSError) as e:
            raise DownloadError(f"Failed to extract release archive: {e}") from e
        return [root / member.name.lstrip("/") for member in members if member.isfile()]

    def _mark_executables(self, installed: list[Path]) -> None:
        """Make command-line entry points from the artifact executable."""
        bin_dir = self.path_resolver.bin_dir.resolve()
        for path in installed:
            if path.resolve().parent == bin_dir:
                os.chmod(path, 0o755)
