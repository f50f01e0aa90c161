# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Packaging: turning a project into archives that are artifacts.

`package.declare_package` is the entry point; `packagers` holds the registry
of package types it dispatches to.
"""

from __future__ import annotations

__all__ = [
	"archive",
	"package",
	"packagers",
	"pom",
]
