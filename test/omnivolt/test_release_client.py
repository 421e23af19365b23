import pytest
import requests

from omnivolt.exceptions import FilesystemError, MetadataError, NetworkError
from omnivolt.release_client import ReleaseClient, ReleaseMetadata

from .conftest import API_URL, DOWNLOAD_URL, FakeResponse


class TestReleaseClient:
    def test_sets_user_agent_and_timeout(self, settings, session):
        session.add(API_URL, FakeResponse.with_json({"tag_name": "v1.39.11"}))
        client = ReleaseClient(settings, session=session)

        assert client.fetch_latest_release() == ReleaseMetadata(tag_name="v1.39.11")
        assert session.headers["User-Agent"] == "omnivolt"
        assert session.urls() == [API_URL]
        assert session.calls[0][1]["timeout"] == settings.request_timeout

    def test_missing_tag_name_is_a_metadata_error(self, settings, session):
        session.add(API_URL, FakeResponse.with_json({"name": "latest"}))

        with pytest.raises(MetadataError):
            ReleaseClient(settings, session=session).fetch_latest_release()

    @pytest.mark.parametrize("payload", [[], "v1.0", {"tag_name": 11}, {"tag_name": ""}])
    def test_unexpected_metadata_shapes_are_metadata_errors(self, settings, session, payload):
        session.add(API_URL, FakeResponse.with_json(payload))

        with pytest.raises(MetadataError):
            ReleaseClient(settings, session=session).fetch_latest_release()

    def test_undecodable_body_is_a_network_error(self, settings, session):
        session.add(API_URL, FakeResponse(body=b"<html>rate limited</html>"))

        with pytest.raises(NetworkError):
            ReleaseClient(settings, session=session).fetch_latest_release()

    def test_error_status_is_a_network_error(self, settings, session):
        session.add(API_URL, FakeResponse(status_code=403))

        with pytest.raises(NetworkError, match="403"):
            ReleaseClient(settings, session=session).fetch_latest_release()

    @pytest.mark.parametrize(
        "error", [requests.exceptions.ConnectionError("refused"), requests.exceptions.ReadTimeout("slow")]
    )
    def test_transport_failures_are_network_errors(self, settings, session, error):
        session.add(API_URL, error)

        with pytest.raises(NetworkError) as exc_info:
            ReleaseClient(settings, session=session).fetch_latest_release()

        assert exc_info.value.cause is error

    def test_asset_url(self, settings, session):
        client = ReleaseClient(settings, session=session)

        assert client.asset_url("v1.0", "omnisharp-linux-x64-net6.0.zip") == f"{DOWNLOAD_URL}/v1.0/omnisharp-linux-x64-net6.0.zip"

    def test_download_writes_body(self, settings, session, tmp_path):
        url = f"{DOWNLOAD_URL}/v1.0/a.zip"
        response = FakeResponse(body=b"x" * 200_000)
        session.add(url, response)
        dest = tmp_path / "a.zip"

        ReleaseClient(settings, session=session).download(url, dest)

        assert dest.read_bytes() == b"x" * 200_000
        assert session.calls[0][1]["stream"] is True
        assert response.closed

    def test_interrupted_download_is_a_network_error(self, settings, session, tmp_path):
        url = f"{DOWNLOAD_URL}/v1.0/a.zip"
        session.add(url, FakeResponse(body=b"x" * 200_000, fail_after_chunks=1))

        with pytest.raises(NetworkError):
            ReleaseClient(settings, session=session).download(url, tmp_path / "a.zip")

    def test_unwritable_destination_is_a_filesystem_error(self, settings, session, tmp_path):
        url = f"{DOWNLOAD_URL}/v1.0/a.zip"
        session.add(url, FakeResponse(body=b"x"))

        with pytest.raises(FilesystemError):
            ReleaseClient(settings, session=session).download(url, tmp_path / "missing" / "a.zip")

    def test_error_status_on_download_closes_response(self, settings, session, tmp_path):
        url = f"{DOWNLOAD_URL}/v1.0/a.zip"
        response = FakeResponse(status_code=404)
        session.add(url, response)

        with pytest.raises(NetworkError, match="status 404"):
            ReleaseClient(settings, session=session).download(url, tmp_path / "a.zip")

        assert response.closed
        assert not (tmp_path / "a.zip").exists()
