"""
Client for the release metadata and release asset endpoints
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests
from requests import Response
from sensai.util.string import ToStringMixin

from omnivolt.exceptions import FilesystemError, MetadataError, NetworkError
from omnivolt.settings import OmniVoltSettings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseMetadata:
    tag_name: str

    @classmethod
    def from_json(cls, data: Any) -> "ReleaseMetadata":
        if not isinstance(data, dict):
            raise MetadataError(f"Expected a JSON object as release metadata, got {type(data).__name__}")
        tag_name = data.get("tag_name")
        if not isinstance(tag_name, str) or not tag_name:
            raise MetadataError("Release metadata lacks a 'tag_name' string")
        return cls(tag_name=tag_name)


class ReleaseClient(ToStringMixin):
    """
    Blocking HTTP access to the upstream releases: the latest release's metadata and the release archives.
    """

    DOWNLOAD_CHUNK_SIZE = 64 * 1024

    def __init__(self, settings: OmniVoltSettings, session: requests.Session | None = None):
        self.api_url = settings.release_api_url
        self.download_url = settings.release_download_url.rstrip("/")
        self.timeout = settings.request_timeout
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"User-Agent": settings.user_agent})

    def _tostring_includes(self) -> list[str]:
        return ["api_url", "download_url", "timeout"]

    def _get(self, url: str, stream: bool = False) -> Response:
        response = None
        try:
            response = self.session.get(url, timeout=self.timeout, stream=stream)
            response.raise_for_status()
            return response
        except requests.exceptions.HTTPError as e:
            if response is not None:
                response.close()
            status = e.response.status_code if e.response is not None else None
            raise NetworkError(f"Request to {url} failed with status {status}", e) from e
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"Request to {url} timed out", e) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Request to {url} failed", e) from e

    def fetch_latest_release(self) -> ReleaseMetadata:
        log.info("Fetching latest release metadata from %s", self.api_url)
        response = self._get(self.api_url)
        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError(f"Could not decode release metadata from {self.api_url}", e) from e
        metadata = ReleaseMetadata.from_json(data)
        log.info("Latest release is %s", metadata.tag_name)
        return metadata

    def asset_url(self, tag: str, file_name: str) -> str:
        return f"{self.download_url}/{tag}/{file_name}"

    def download(self, url: str, dest: Path) -> None:
        """
        Streams the response body of a GET request to the given file.
        """
        log.info("Downloading %s to %s", url, dest)
        response = self._get(url, stream=True)
        try:
            with open(dest, "wb") as f:
                for chunk in response.iter_content(chunk_size=self.DOWNLOAD_CHUNK_SIZE):
                    f.write(chunk)
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Download of {url} was interrupted", e) from e
        except OSError as e:
            raise FilesystemError(f"Could not write {dest}", e) from e
        finally:
            response.close()
