"""GitLab Releases client (REST API v4, no asset uploads)."""

from typing import ClassVar
from urllib.parse import quote

from releasepipe.publishers.base import PublishStatus, ReleaseClient


class GitLab(ReleaseClient):
    provider: ClassVar[str] = "GitLab"

    @property
    def origin(self) -> str:
        if self.options.origin:
            return self.options.origin.rstrip("/")
        repo = self.repo
        return f"https://{repo.host if repo else 'gitlab.com'}"

    @property
    def repository(self) -> str:
        repo = self.repo
        return repo.repository if repo else ""

    def release(self, version: str, changelog: str | None = None) -> bool:
        """Create the release for the current tag (True on success or dry-run)."""
        project_id = quote(self.repository, safe="")
        url = f"{self.origin}/api/v4/projects/{project_id}/releases"
        payload = {
            "name": self.release_name,
            "tag_name": self.tag_name,
            "description": self.get_body(changelog),
        }
        if self.is_dry_run:
            self.log.exec(f"POST {url} (tag {payload['tag_name']})", executed=False)
            return True

        data = self._request(
            "POST", url, payload=payload, headers={"PRIVATE-TOKEN": self.token or ""}
        )
        links = data.get("_links") or {}
        self.release_url = links.get("self") or (
            f"{self.origin}/{self.repository}/-/releases/{quote(self.tag_name)}"
        )
        self.is_released = True
        self.status = PublishStatus.SUCCESS
        self.log.verbose(f"GitLab release created for {version}")
        return True
