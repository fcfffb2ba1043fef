"""Creating, naming and deleting GitHub repositories."""

from __future__ import annotations

import random
from typing import Any

import requests

from appservice.util import sanitize_name

__all__ = [
    "APP_STUDIO_APP_DATA_ORG",
    "GitHubClient",
    "GitHubError",
    "generate_new_repository_name",
    "generate_new_repository",
    "get_repo_name_from_url",
    "delete_repository",
]

APP_STUDIO_APP_DATA_ORG = "redhat-appstudio-appdata"

_VERBS = ["run", "jump", "build", "write", "sing", "read", "swim", "paint", "bake", "climb",
          "dance", "fly", "grow", "hunt", "join", "kick", "lift", "mend", "open", "pull"]
_NOUNS = ["river", "apple", "cloud", "engine", "forest", "garden", "hammer", "island", "jacket",
          "kettle", "ladder", "mirror", "needle", "orange", "pencil", "rocket", "saddle", "tiger"]


class GitHubError(Exception):
    """Raised when a GitHub API call fails."""


class GitHubClient:
    """A minimal client for the GitHub repositories API."""

    def __init__(
        self,
        token: str | None = None,
        base_url: str = "https://api.github.com",
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.session.headers["Accept"] = "application/vnd.github.v3+json"
        if token:
            self.session.headers["Authorization"] = f"token {token}"

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        try:
            response = self.session.request(method, f"{self.base_url}{path}", timeout=30, **kwargs)
        except requests.RequestException as exc:
            raise GitHubError(f"{method} {path} failed: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise GitHubError(f"{method} {path}: {response.status_code} {response.text}")
        return response

    def create_repository(
        self, org_name: str, repo_name: str, description: str = "", private: bool = True
    ) -> dict[str, Any]:
        """Create a repository in an organization and return GitHub's reply."""
        response = self._request(
            "POST",
            f"/orgs/{org_name}/repos",
            json={"name": repo_name, "private": private, "description": description},
        )
        return response.json() if response.content else {}

    def delete_repository(self, org_name: str, repo_name: str) -> None:
        """Delete a repository."""
        self._request("DELETE", f"/repos/{org_name}/{repo_name}")


def generate_new_repository_name(display_name: str, namespace: str) -> str:
    """Build a repository name from a display name, a namespace and two random words."""
    return "-".join(
        [
            sanitize_name(display_name),
            namespace,
            sanitize_name(random.choice(_VERBS)),
            sanitize_name(random.choice(_NOUNS)),
        ]
    )


def generate_new_repository(
    client: GitHubClient, org_name: str, repo_name: str, description: str
) -> str:
    """Create a private repository and return its URL."""
    client.create_repository(org_name, repo_name, description, private=True)
    return f"https://github.com/{org_name}/{repo_name}"


def get_repo_name_from_url(repo_url: str, org_name: str) -> str:
    """Return the repository name that follows the organization in a URL."""
    parts = repo_url.split(org_name + "/")
    if len(parts) < 2:
        raise ValueError(f"error: unable to parse Git repository URL: {repo_url}")
    return parts[1]


def delete_repository(client: GitHubClient, org_name: str, repo_name: str) -> None:
    """Delete a repository of an organization."""
    client.delete_repository(org_name, repo_name)