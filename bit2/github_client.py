"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses / error payloads

Local git operations live in `git.py`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import requests

from bit2 import shell
from bit2.shell import CommandError, Runner


class GitHubError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str
    html_url: str
    clone_url: str
    default_branch: str


def resolve_github_token(runner: Runner | None = None) -> str:
    """
    GITHUB_TOKEN wins; otherwise reuse the GitHub CLI login (`gh auth token`).
    Returns "" if neither is available.
    """
    token = os.environ.get("GITHUB_TOKEN", "").strip()
    if token:
        return token
    run = runner or shell.run
    try:
        return run(["gh", "auth", "token"]).stdout.strip()
    except CommandError:
        return ""


def tokenized_https_remote(clone_url: str, token: str) -> str:
    """
    Convert https://github.com/owner/name.git into an HTTPS URL containing a token.

    Note: this stores the token in `.git/config` once set as a remote. Only used for
    the initial push; `deploy` resets the remote to the plain URL afterwards.
    """
    return clone_url.replace("https://", f"https://x-access-token:{token}@", 1)


def _repo_info(owner: str, name: str, data: dict[str, Any]) -> RepoInfo:
    return RepoInfo(
        owner=owner,
        name=name,
        html_url=data["html_url"],
        clone_url=data["clone_url"],
        default_branch=data.get("default_branch") or "main",
    )


class GitHubClient:
    def __init__(self, token: str, api_base: str = "https://api.github.com") -> None:
        if not token.strip():
            raise GitHubError("GitHub token is required.")
        self._token = token
        self._api_base = api_base.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "bit2",
        }

    def _request(self, method: str, path: str, *, json_body: dict[str, Any] | None = None) -> Any:
        url = f"{self._api_base}{path}"
        try:
            r = requests.request(method, url, headers=self._headers(), json=json_body, timeout=30)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub API request failed {method} {path}: {e}") from e
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            message = payload.get("message", payload) if isinstance(payload, dict) else payload
            raise GitHubError(f"GitHub API error {r.status_code} {method} {path}: {message}", r.status_code)
        if r.status_code == 204:
            return None
        return r.json()

    def viewer_login(self) -> str:
        viewer = self._request("GET", "/user")
        return str(viewer.get("login") or "")

    def get_repo(self, owner: str, name: str) -> RepoInfo | None:
        """
        Return RepoInfo if the repo exists and is accessible; otherwise None.
        """
        try:
            data = self._request("GET", f"/repos/{owner}/{name}")
        except GitHubError as e:
            if e.status_code == 404:
                return None
            raise
        return _repo_info(owner, name, data)

    def create_repo(
        self,
        *,
        owner: str,
        name: str,
        private: bool,
        description: str = "",
    ) -> RepoInfo:
        """
        Create a new repository under either:
        - the authenticated user (if owner matches the viewer login), OR
        - an organization (if owner is an org).
        """
        body = {
            "name": name,
            "private": private,
            "description": description,
            "auto_init": False,
            "has_issues": True,
            "has_projects": False,
            "has_wiki": False,
        }

        if owner == self.viewer_login():
            data = self._request("POST", "/user/repos", json_body=body)
        else:
            data = self._request("POST", f"/orgs/{owner}/repos", json_body=body)
        return _repo_info(owner, name, data)

    def delete_repo(self, owner: str, name: str) -> None:
        try:
            self._request("DELETE", f"/repos/{owner}/{name}")
        except GitHubError as e:
            if e.status_code == 403:
                raise GitHubError(
                    "Insufficient GitHub permissions for repository deletion (token needs the delete_repo scope)",
                    403,
                ) from e
            raise
