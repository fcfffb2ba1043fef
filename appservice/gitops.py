"""Generating a component's GitOps resources and pushing them to its repository."""

from __future__ import annotations

import json
import posixpath
import subprocess
from abc import ABC, abstractmethod
from typing import Any

from appservice.generate import generate
from appservice.ioutils import Filesystem
from appservice.models import Component
from appservice.yaml_resources import ResourceWriteError

__all__ = [
    "Executor",
    "CmdExecutor",
    "CommandError",
    "GitOpsError",
    "new_cmd_executor",
    "generate_and_push",
]


class CommandError(Exception):
    """Raised when a command fails; carries whatever output it produced."""

    def __init__(self, message: str, output: bytes = b"") -> None:
        super().__init__(message)
        self.output = output


class GitOpsError(Exception):
    """Raised when generating or pushing GitOps resources fails."""


class Executor(ABC):
    """Runs commands in a directory and returns their combined output."""

    @abstractmethod
    def execute(self, base_dir: str, command: str, *args: str) -> bytes:
        """Run a command; raise CommandError if it fails."""


class CmdExecutor(Executor):
    """Runs commands as real processes."""

    def execute(self, base_dir: str, command: str, *args: str) -> bytes:
        try:
            result = subprocess.run(
                [command, *args],
                cwd=base_dir or None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except OSError as exc:
            raise CommandError(str(exc)) from exc
        if result.returncode != 0:
            raise CommandError(f"exit status {result.returncode}", result.stdout)
        return result.stdout


def new_cmd_executor() -> CmdExecutor:
    """Return an executor that runs commands as processes."""
    return CmdExecutor()


def _join(*parts: str) -> str:
    joined = posixpath.normpath("/".join(p for p in parts if p))
    if joined.startswith("//"):
        joined = "/" + joined.lstrip("/")
    return joined


def _quote(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    return json.dumps(str(value), ensure_ascii=False)


def generate_and_push(
    output_path: str,
    remote: str,
    component: Component,
    executor: Executor,
    fs: Filesystem,
    branch: str,
    context: str,
) -> None:
    """Clone the GitOps repository, regenerate the component's resources and push them.

    The resources go under ``<context>/components/<name>/base`` in the clone; a
    commit is only made and pushed when ``git diff --cached`` reports changes.
    """
    name = component.name
    try:
        executor.execute(output_path, "git", "clone", remote, name)
    except CommandError as exc:
        raise GitOpsError(
            f"failed to clone git repository in {_quote(output_path)} {_quote(exc.output)}: {exc}"
        ) from exc

    repo_path = _join(output_path, name)

    try:
        executor.execute(repo_path, "git", "switch", branch)
    except CommandError:
        try:
            executor.execute(repo_path, "git", "checkout", "-b", branch)
        except CommandError as exc:
            raise GitOpsError(
                f"failed to checkout branch {_quote(branch)} in {_quote(repo_path)} "
                f"{_quote(exc.output)}: {exc}"
            ) from exc

    old_dir = _join("components", name)
    try:
        executor.execute(repo_path, "rm", "-rf", old_dir)
    except CommandError as exc:
        raise GitOpsError(
            f"failed to delete {_quote(old_dir)} folder in repository in {_quote(repo_path)} "
            f"{_quote(exc.output)}: {exc}"
        ) from exc

    component_path = _join(repo_path, context, "components", name, "base")
    try:
        generate(fs, component_path, component)
    except (ResourceWriteError, OSError) as exc:
        raise GitOpsError(
            f"failed to generate the gitops resources in {_quote(component_path)} "
            f"for component {_quote(name)}: {exc}"
        ) from exc

    try:
        executor.execute(repo_path, "git", "add", ".")
    except CommandError as exc:
        raise GitOpsError(
            f"failed to add files for component {_quote(name)} to repository in "
            f"{_quote(repo_path)} {_quote(exc.output)}: {exc}"
        ) from exc

    try:
        diff = executor.execute(repo_path, "git", "--no-pager", "diff", "--cached")
    except CommandError as exc:
        raise GitOpsError(
            f"failed to check git diff in repository {_quote(repo_path)} "
            f"{_quote(exc.output)}: {exc}"
        ) from exc
    if not diff:
        return

    try:
        executor.execute(repo_path, "git", "commit", "-m", "Generate GitOps resources")
    except CommandError as exc:
        raise GitOpsError(
            f"failed to commit files to repository in {_quote(repo_path)} "
            f"{_quote(exc.output)}: {exc}"
        ) from exc
    try:
        executor.execute(repo_path, "git", "push", "origin", branch)
    except CommandError as exc:
        raise GitOpsError(
            f"failed push remote to repository {_quote(remote)} {_quote(exc.output)}: {exc}"
        ) from exc