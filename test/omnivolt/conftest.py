import io
import json
import zipfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
import requests

from omnivolt.host import LaunchRequest, MessageType, PluginRpc, VoltEnvironment
from omnivolt.settings import OmniVoltSettings

API_URL = "https://api.example.test/repos/OmniSharp/omnisharp-roslyn/releases/latest"
DOWNLOAD_URL = "https://example.test/OmniSharp/omnisharp-roslyn/releases/download"


class FakeResponse:
    def __init__(self, status_code: int = 200, body: bytes = b"", fail_after_chunks: int | None = None):
        self.status_code = status_code
        self.body = body
        self.fail_after_chunks = fail_after_chunks
        self.closed = False

    @classmethod
    def with_json(cls, data: Any) -> "FakeResponse":
        return cls(body=json.dumps(data).encode())

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)  # type: ignore[arg-type]

    def json(self) -> Any:
        return json.loads(self.body.decode())

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        for i, start in enumerate(range(0, len(self.body), chunk_size)):
            if self.fail_after_chunks is not None and i >= self.fail_after_chunks:
                raise requests.exceptions.ChunkedEncodingError("connection reset")
            yield self.body[start : start + chunk_size]

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """
    Replaces requests.Session; responses (or exceptions) are registered per URL and every GET is recorded.
    """

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.responses: dict[str, list[FakeResponse | Exception]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def add(self, url: str, response: FakeResponse | Exception) -> None:
        self.responses.setdefault(url, []).append(response)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((url, kwargs))
        queue = self.responses.get(url)
        if not queue:
            raise requests.exceptions.ConnectionError(f"no route to {url}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response

    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


class RecordingPluginRpc(PluginRpc):
    def __init__(self) -> None:
        self.launch_requests: list[LaunchRequest] = []
        self.messages: list[tuple[MessageType, str]] = []

    def start_lsp(self, request: LaunchRequest) -> None:
        self.launch_requests.append(request)

    def window_show_message(self, message_type: MessageType, message: str) -> None:
        self.messages.append((message_type, message))


class FakeVoltEnvironment(VoltEnvironment):
    def __init__(self, os_name: str = "linux", arch: str = "x86_64", uri: str = "file:///plugins/csharp/"):
        self._os = os_name
        self._arch = arch
        self._uri = uri

    def operating_system(self) -> str:
        return self._os

    def architecture(self) -> str:
        return self._arch

    def uri(self) -> str:
        return self._uri


def make_zip(entries: dict[str, bytes], modes: dict[str, int] | None = None) -> bytes:
    """Builds a zip archive in memory; modes optionally sets Unix permission bits per entry."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in entries.items():
            info = zipfile.ZipInfo(name)
            if modes and name in modes:
                info.create_system = 3
                info.external_attr = modes[name] << 16
            zf.writestr(info, content)
    return buffer.getvalue()


@pytest.fixture
def settings(tmp_path: Path) -> OmniVoltSettings:
    return OmniVoltSettings(
        working_dir=str(tmp_path / "volt"),
        release_api_url=API_URL,
        release_download_url=DOWNLOAD_URL,
        log_to_file=False,
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def rpc() -> RecordingPluginRpc:
    return RecordingPluginRpc()
