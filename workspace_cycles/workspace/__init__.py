"""Workspace module for locating and parsing package manifests."""

from workspace_cycles.workspace.loader import (
    DEFAULT_MANIFEST_NAME,
    ManifestError,
    WorkspaceLoader,
    WorkspaceLoadError,
)

__all__ = ["DEFAULT_MANIFEST_NAME", "ManifestError", "WorkspaceLoadError", "WorkspaceLoader"]
