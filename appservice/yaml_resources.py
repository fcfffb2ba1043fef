"""Writing resources out to files as YAML."""

from __future__ import annotations

import io
import os
from typing import Any, Mapping, TextIO

import yaml

from appservice.ioutils import Filesystem
from appservice.quantity import Quantity

__all__ = [
    "ResourceWriteError",
    "write_resources",
    "marshal_item_to_file",
    "marshal_output",
]


class ResourceWriteError(Exception):
    """Raised when a resource cannot be serialized or written."""


def _expand_home(path: str) -> str:
    if not path.startswith("~"):
        return path
    if len(path) > 1 and path[1] not in "/\\":
        raise ValueError("cannot expand user-specific home dir")
    home = os.environ.get("HOME") or os.path.expanduser("~")
    return os.path.join(home, path[1:].lstrip("/\\"))


def _os_message(exc: OSError) -> str:
    return exc.strerror or str(exc)


def _plain(item: Any) -> Any:
    if isinstance(item, Quantity):
        return str(item)
    to_dict = getattr(item, "to_dict", None)
    if callable(to_dict):
        return _plain(to_dict())
    if isinstance(item, Mapping):
        return {str(key): _plain(value) for key, value in item.items()}
    if isinstance(item, (list, tuple)):
        return [_plain(value) for value in item]
    return item


def write_resources(
    fs: Filesystem, path: str | os.PathLike[str], files: Mapping[str, Any]
) -> list[str]:
    """Write each item to its file name under ``path`` and return the names written.

    A leading ``~`` in ``path`` is expanded to the home directory.
    """
    try:
        root = _expand_home(os.fspath(path))
    except ValueError as exc:
        raise ResourceWriteError(f"failed to resolve path to file: {exc}") from exc
    written = []
    for filename, item in files.items():
        marshal_item_to_file(fs, os.path.join(root, filename), item)
        written.append(filename)
    return written


def marshal_item_to_file(fs: Filesystem, filename: str | os.PathLike[str], item: Any) -> None:
    """Create the parent directories of ``filename`` and write ``item`` to it as YAML."""
    filename = os.fspath(filename)
    directory = os.path.dirname(filename)
    if directory:
        try:
            fs.makedirs(directory)
        except OSError as exc:
            raise ResourceWriteError(
                f"failed to MkDirAll for {filename}: {_os_message(exc)}"
            ) from exc
    buffer = io.StringIO()
    marshal_output(buffer, item)
    try:
        fs.write_bytes(filename, buffer.getvalue().encode("utf-8"))
    except OSError as exc:
        raise ResourceWriteError(
            f"failed to Create file {filename}: {_os_message(exc)}"
        ) from exc


def marshal_output(out: TextIO, output: Any) -> None:
    """Serialize ``output`` as YAML, with sorted keys, and write it to a text stream."""
    try:
        text = yaml.safe_dump(_plain(output), default_flow_style=False, sort_keys=True)
    except yaml.YAMLError as exc:
        raise ResourceWriteError(f"failed to marshal data: {exc}") from exc
    try:
        out.write(text)
    except (OSError, ValueError) as exc:
        raise ResourceWriteError(f"failed to write data: {exc}") from exc