"""
Keeps the managed OmniSharp installation in the plugin's working directory in line with the latest upstream release.
"""

import logging
from pathlib import Path

from sensai.util.logging import LogTime

from omnivolt.exceptions import ArchiveError, FilesystemError
from omnivolt.platform_utils import PlatformTag
from omnivolt.release_client import ReleaseClient
from omnivolt.settings import OmniVoltSettings
from omnivolt.util.secure_downloads import cleanup_path, download_with_retries, make_executable, remove_tree, safe_extract_zip
from omnivolt.version_store import VersionStore

log = logging.getLogger(__name__)


class ReleaseProvisioner:
    """
    Checks the installed release against the latest upstream release and, if they differ, replaces the
    installation wholesale: the old installation is removed, the platform's release archive is downloaded
    and extracted, and only then is the new version recorded.

    If anything fails in between, the version record still names the previously installed release,
    so the next run will attempt the update again.
    """

    def __init__(
        self,
        settings: OmniVoltSettings,
        release_client: ReleaseClient | None = None,
        version_store: VersionStore | None = None,
    ):
        self.settings = settings
        self.release_client = release_client if release_client is not None else ReleaseClient(settings)
        self.version_store = version_store if version_store is not None else VersionStore(settings.working_dir, settings.version_file_name)

    def launch_location(self, platform: PlatformTag) -> str:
        """
        :return: the location of the server binary relative to the working directory (with '/' separators)
        """
        return f"{self.settings.install_dir_name}/{platform.binary_name(self.settings.binary_base_name)}"

    def binary_path(self, platform: PlatformTag) -> Path:
        return Path(self.settings.install_dir) / platform.binary_name(self.settings.binary_base_name)

    def provision(self, platform: PlatformTag) -> str:
        """
        Makes sure that the installation matches the latest release.

        :param platform: the platform whose release archive is to be installed
        :return: the location of the server binary relative to the working directory
        """
        latest_tag = self.release_client.fetch_latest_release().tag_name
        installed_tag = self.version_store.read()

        if installed_tag == latest_tag:
            log.info("OmniSharp %s is up to date", installed_tag)
            if not self.binary_path(platform).exists():
                log.warning("Version record names %s but %s is missing", installed_tag, self.binary_path(platform))
        else:
            log.info("Updating OmniSharp from %s to %s for %s", installed_tag or "<none>", latest_tag, platform)
            self._install(latest_tag, platform)

        return self.launch_location(platform)

    def _install(self, tag: str, platform: PlatformTag) -> None:
        install_dir = Path(self.settings.install_dir)
        archive_name = platform.archive_name()
        archive_path = Path(self.settings.working_dir) / archive_name

        remove_tree(install_dir)

        try:
            with LogTime(f"Download of {archive_name}", logger=log):
                download_with_retries(
                    self.release_client.asset_url(tag, archive_name),
                    archive_path,
                    self.release_client.download,
                    attempts=self.settings.download_attempts,
                )
            try:
                install_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FilesystemError(f"Could not create {install_dir}", e) from e
            with LogTime(f"Extraction of {archive_name}", logger=log):
                safe_extract_zip(archive_path, install_dir, strict=self.settings.strict_archive_paths)
        finally:
            cleanup_path(archive_path)

        binary = self.binary_path(platform)
        if not binary.is_file():
            raise ArchiveError(f"Release archive {archive_name} of {tag} does not contain {binary.name}")
        if not platform.os.is_windows():
            make_executable(binary)

        self.version_store.write(tag)
        log.info("Installed OmniSharp %s to %s", tag, install_dir)
