"""GitHub Releases client.

Creates releases through the REST API and uploads asset files to them.
The token is read from the environment variable named by github.token_ref.
"""

import mimetypes
from pathlib import Path
from typing import Any, ClassVar
from urllib.parse import quote

from releasepipe.publishers.base import PublishStatus, ReleaseClient

GITHUB_HOST = "github.com"


class GitHub(ReleaseClient):
    provider: ClassVar[str] = "GitHub"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.release_id: int | None = None
        self.upload_url: str | None = None

    @property
    def host(self) -> str:
        return self.options.host

    @property
    def api_url(self) -> str:
        if self.host == GITHUB_HOST:
            return "https://api.github.com"
        return f"https://{self.host}/api/v3"

    @property
    def uploads_url(self) -> str:
        if self.host == GITHUB_HOST:
            return "https://uploads.github.com"
        return f"https://{self.host}/api/uploads"

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    @property
    def repository(self) -> str:
        repo = self.repo
        return repo.repository if repo else ""

    def release(
        self,
        version: str,
        is_pre_release: bool = False,
        changelog: str | None = None,
    ) -> bool:
        """Create the release for the current tag.

        Returns True on success (also in dry-run, where nothing is sent).
        """
        payload: dict[str, Any] = {
            "tag_name": self.tag_name,
            "name": self.release_name,
            "body": self.get_body(changelog),
            "prerelease": is_pre_release,
            "draft": self.options.draft,
        }
        url = f"{self.api_url}/repos/{self.repository}/releases"
        if self.is_dry_run:
            self.log.exec(f"POST {url} (tag {payload['tag_name']})", executed=False)
            return True

        data = self._request("POST", url, payload=payload, headers=self._headers())
        self.release_id = data.get("id")
        self.upload_url = data.get("upload_url")
        self.release_url = data.get("html_url") or self.default_release_url()
        self.is_released = True
        self.status = PublishStatus.SUCCESS
        self.log.verbose(f"GitHub release created for {version}")
        return True

    def default_release_url(self) -> str:
        return f"https://{self.host}/{self.repository}/releases/tag/{self.tag_name}"

    def asset_files(self) -> list[Path]:
        files: list[Path] = []
        for pattern in self.options.assets:
            files.extend(path for path in sorted(Path.cwd().glob(pattern)) if path.is_file())
        return files

    def upload_assets(self) -> bool:
        """Upload every file matching github.assets to the created release."""
        if not self.options.assets:
            return True
        files = self.asset_files()
        if self.is_dry_run or self.release_id is None:
            for path in files:
                self.log.exec(f"upload {path.name}", executed=False)
            return True

        for path in files:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            url = (
                f"{self.uploads_url}/repos/{self.repository}/releases/"
                f"{self.release_id}/assets?name={quote(path.name)}"
            )
            self._request(
                "POST",
                url,
                data=path.read_bytes(),
                headers={**self._headers(), "Content-Type": content_type},
            )
            self.log.verbose(f"Uploaded {path.name}")
        return True
