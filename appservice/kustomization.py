"""A structural model of the Kustomize file format."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

__all__ = ["Kustomization"]


@dataclass
class Kustomization:
    """The resources, bases and labels of a kustomization file."""

    resources: list[str] = field(default_factory=list)
    bases: list[str] = field(default_factory=list)
    common_labels: dict[str, str] = field(default_factory=dict)

    def add_resources(self, *args: str) -> None:
        """Add resource file names, keeping the list free of duplicates and sorted."""
        self.resources = sorted(dict.fromkeys([*self.resources, *args]))

    def to_dict(self) -> dict[str, Any]:
        """Return the kustomization in file form, leaving out empty fields."""
        result: dict[str, Any] = {}
        if self.resources:
            result["resources"] = list(self.resources)
        if self.bases:
            result["bases"] = list(self.bases)
        if self.common_labels:
            result["commonLabels"] = dict(self.common_labels)
        return result