"""Unit tests for releasepipe.publishers.github.

Tests for GitHub:
- validate(): token presence
- release(): request payload, release url, dry-run
- upload_assets(): matching files, no assets, dry-run
- _request(): HTTP errors become RemoteReleaseError
"""

import io
import json
import urllib.error
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from releasepipe.changelog import Changelog
from releasepipe.config.models import GitHubOptions, GitOptions
from releasepipe.exceptions import RemoteReleaseError, TokenError
from releasepipe.publishers.base import PublishStatus
from releasepipe.publishers.github import GitHub


@pytest.fixture
def github_factory(make_config, monkeypatch: pytest.MonkeyPatch):
    """Build a GitHub client bound to git@github.com:webpro/app.git."""
    monkeypatch.setenv("GITHUB_TOKEN", "secret")

    def factory(dry_run: bool = False, **options: object) -> GitHub:
        config = make_config(dry_run=dry_run)
        config.set_runtime_options(version="1.0.1", name="app")
        shell = MagicMock()
        shell.config = config
        client = GitHub(
            GitHubOptions(release=True, **options),
            GitOptions(),
            shell,
            MagicMock(),
            Changelog(shell),
        )
        client.remote_url = "git@github.com:webpro/app.git"
        return client

    return factory


class TestValidate:
    """Tests for GitHub.validate()."""

    def test_missing_token(self, make_config, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        shell = MagicMock()
        shell.config = make_config()
        client = GitHub(GitHubOptions(release=True), GitOptions(), shell, MagicMock(), MagicMock())

        with pytest.raises(TokenError) as exc_info:
            client.validate()
        assert exc_info.value.token_ref == "GITHUB_TOKEN"

    def test_disabled_release_needs_no_token(self, make_config, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        shell = MagicMock()
        shell.config = make_config()
        GitHub(GitHubOptions(), GitOptions(), shell, MagicMock(), MagicMock()).validate()


class TestRelease:
    """Tests for GitHub.release()."""

    def test_release_posts_payload(self, github_factory) -> None:
        client = github_factory()
        response = {"id": 7, "html_url": "https://github.com/webpro/app/releases/tag/1.0.1"}

        with patch.object(GitHub, "_request", return_value=response) as request:
            assert client.release("1.0.1", changelog="* Fix bug (abc123)") is True

        method, url = request.call_args.args
        payload = request.call_args.kwargs["payload"]
        assert method == "POST"
        assert url == "https://api.github.com/repos/webpro/app/releases"
        assert payload == {
            "tag_name": "1.0.1",
            "name": "Release 1.0.1",
            "body": "* Fix bug (abc123)",
            "prerelease": False,
            "draft": False,
        }
        assert request.call_args.kwargs["headers"]["Authorization"] == "Bearer secret"
        assert client.is_released is True
        assert client.release_id == 7
        assert client.status == PublishStatus.SUCCESS
        assert client.get_release_url() == response["html_url"]

    def test_enterprise_host(self, github_factory) -> None:
        client = github_factory(host="github.example.com")
        assert client.api_url == "https://github.example.com/api/v3"

        with patch.object(GitHub, "_request", return_value={}):
            client.release("1.0.1")
        assert client.get_release_url() == "https://github.example.com/webpro/app/releases/tag/1.0.1"

    def test_dry_run_sends_nothing(self, github_factory) -> None:
        client = github_factory(dry_run=True)
        with patch.object(GitHub, "_request") as request:
            assert client.release("1.0.1") is True
        request.assert_not_called()
        assert client.is_released is False


class TestUploadAssets:
    """Tests for GitHub.upload_assets()."""

    def test_no_assets(self, github_factory) -> None:
        client = github_factory()
        with patch.object(GitHub, "_request") as request:
            assert client.upload_assets() is True
        request.assert_not_called()

    def test_uploads_matching_files(
        self, github_factory, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(temp_dir)
        (temp_dir / "dist").mkdir()
        (temp_dir / "dist" / "app.zip").write_bytes(b"zip")
        (temp_dir / "dist" / "app.tar.gz").write_bytes(b"tar")
        client = github_factory(assets=["dist/*.zip"])
        client.release_id = 7

        with patch.object(GitHub, "_request", return_value={}) as request:
            client.upload_assets()

        assert request.call_count == 1
        url = request.call_args.args[1]
        assert url == "https://uploads.github.com/repos/webpro/app/releases/7/assets?name=app.zip"
        assert request.call_args.kwargs["data"] == b"zip"


class TestRequest:
    """Tests for ReleaseClient._request() error mapping."""

    def test_http_error(self, github_factory) -> None:
        client = github_factory()
        error = urllib.error.HTTPError(
            "https://api.github.com", 401, "Unauthorized", {}, io.BytesIO(b"Bad credentials")  # type: ignore[arg-type]
        )
        with patch("urllib.request.urlopen", side_effect=error):
            with pytest.raises(RemoteReleaseError) as exc_info:
                client.release("1.0.1")
        assert "401" in str(exc_info.value)
        assert client.is_released is False

    def test_decodes_json(self, github_factory) -> None:
        client = github_factory()
        response = MagicMock()
        response.read.return_value = json.dumps({"id": 1}).encode()
        response.__enter__.return_value = response
        with patch("urllib.request.urlopen", return_value=response):
            assert client._request("GET", "https://api.github.com/x") == {"id": 1}
