"""Helpers for names, GitHub URLs, devfile downloads and repository scanning."""

from __future__ import annotations

import os
import posixpath
import re
import shutil
import subprocess
from urllib.parse import urlsplit

import requests

from appservice.devfile import (
    DEVFILE,
    DEVFILE_NAME,
    HIDDEN_DEVFILE,
    HIDDEN_DEVFILE_DIR,
    HIDDEN_DEVFILE_NAME,
    HIDDEN_DIR_DEVFILE,
    HIDDEN_DIR_HIDDEN_DEVFILE,
)

__all__ = [
    "DevfileNotFoundError",
    "EndpointError",
    "sanitize_name",
    "is_exist",
    "convert_github_url",
    "download_devfile",
    "curl_endpoint",
    "clone_repo",
    "read_devfiles_from_repo",
]


class DevfileNotFoundError(Exception):
    """Raised when no devfile can be found."""


class EndpointError(Exception):
    """Raised when an endpoint cannot be fetched or answers with a non-200 status."""


def sanitize_name(name: str) -> str:
    """Lower-case a name, turn spaces into dashes, drop quotes and cut it to 50 chars."""
    return name.replace(" ", "-").replace("'", "").lower()[:50]


def is_exist(path: str | os.PathLike[str]) -> bool:
    """Return whether the file or directory exists; invalid paths raise."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


_GIT_SUFFIX = re.compile(r".git$")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")


def convert_github_url(url: str) -> str:
    """Convert a GitHub repository URL to its raw-content form."""
    url = _GIT_SUFFIX.sub("", url)
    if _CONTROL.search(url):
        raise ValueError(f"invalid control character in URL {url!r}")
    host = urlsplit(url).netloc
    if "github" in host and "raw" not in host:
        parts = url.split("/")
        if len(parts) > 2 and parts[-2] == "tree":
            url = url.replace("/tree", "", 1)
        else:
            url = url + "/main"
        if host == "github.com":
            url = url.replace("github.com", "raw.githubusercontent.com", 1)
    return url


def download_devfile(directory: str) -> bytes:
    """Fetch the first devfile found at the usual locations under a URL."""
    for location in (DEVFILE, HIDDEN_DEVFILE, HIDDEN_DIR_DEVFILE, HIDDEN_DIR_HIDDEN_DEVFILE):
        try:
            return curl_endpoint(f"{directory}/{location}")
        except EndpointError:
            continue
    raise DevfileNotFoundError(f"unable to find any devfiles in dir {directory}")


def curl_endpoint(endpoint: str) -> bytes:
    """GET an endpoint and return its body; raise unless the status is 200."""
    try:
        response = requests.get(endpoint, timeout=30)
    except (requests.RequestException, ValueError) as exc:
        raise EndpointError(f"failed to get {endpoint!r}: {exc}") from exc
    with response:
        if response.status_code == 200:
            return response.content
    raise EndpointError(f"received a non-200 status when curling {endpoint}")


def clone_repo(clone_path: str, repo_url: str) -> None:
    """Clone a repository into ``clone_path``, replacing anything already there."""
    if is_exist(clone_path):
        shutil.rmtree(clone_path, ignore_errors=True)
    result = subprocess.run(
        ["git", "clone", "--", repo_url, clone_path],
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        raise OSError(f"failed to clone {repo_url} into {clone_path}: {result.stderr.strip()}")


def read_devfiles_from_repo(local_path: str, depth: int) -> dict[str, bytes]:
    """Map each component context below ``local_path`` to its devfile, up to ``depth``."""
    return _search_devfiles(local_path, 0, depth)


def _context_of(path: str, level: int) -> str:
    context = ""
    current = path
    for _ in range(level):
        context = posixpath.join(os.path.basename(current), context) if context else os.path.basename(current)
        current = os.path.dirname(current)
    return context


def _search_devfiles(local_path: str, level: int, depth: int) -> dict[str, bytes]:
    found: dict[str, bytes] = {}
    with os.scandir(local_path) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        child = os.path.join(local_path, entry.name)
        if entry.name in (DEVFILE_NAME, HIDDEN_DEVFILE_NAME) and level != 0:
            with open(child, "rb") as handle:
                found[_context_of(local_path, level)] = handle.read()
        elif entry.is_dir() and entry.name == HIDDEN_DEVFILE_DIR:
            nested = _search_devfiles(child, level, depth)
            if HIDDEN_DEVFILE_DIR in nested:
                found[_context_of(local_path, level)] = nested[HIDDEN_DEVFILE_DIR]
        elif entry.is_dir() and level + 1 <= depth:
            found.update(_search_devfiles(child, level + 1, depth))
    if not found and level == 0:
        raise DevfileNotFoundError(
            "unable to find any devfile(s) in the multi component repo, "
            f"devfiles can be detected only upto a depth of {depth} dir"
        )
    return found