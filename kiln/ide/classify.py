# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Classify a resolved classpath for project-file exporters.

Entries are partitioned in sequence, each step taking what the previous one
left over:

1. projects, and entries that are some in-tree project's package, become
   that project (workspace modules),
2. entries under the local repository root (repository artifacts),
3. entries under the project's own directory (generated),
4. everything else (local library files).

The first matching step wins and relative order is kept inside each partition.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence

from kiln.core.project import Project
from kiln.core.tasks import Task


@dataclass(frozen=True)
class ClasspathPartition:
	workspace_modules: list[Project]
	repo_artifacts: list[Any]
	generated: list[Any]
	local_files: list[Any]

	def to_dict(self) -> dict[str, Any]:
		return {
			"workspace_modules": [p.id for p in self.workspace_modules],
			"repo_artifacts": [entry_path(e) for e in self.repo_artifacts],
			"generated": [entry_path(e) for e in self.generated],
			"local_files": [entry_path(e) for e in self.local_files],
		}


def entry_path(entry: Any) -> str:
	if isinstance(entry, Task):
		return entry.name
	return os.fspath(entry) if isinstance(entry, (str, os.PathLike)) else str(entry)


def expand_classpath(project: Project) -> list[Any]:
	"""A project's classpath with project dependencies replaced by their packages."""
	out: list[Any] = []
	for entry in project.compile.classpath:
		if isinstance(entry, Project):
			out.extend(entry.packages or [entry])
		else:
			out.append(entry)
	# The project's own output is not a dependency.
	target = str(project.compile.target)
	return [e for e in out if entry_path(e) != target]


def _is_under(path: str, root: str) -> bool:
	root = root.rstrip(os.sep)
	return path == root or path.startswith(root + os.sep)


def _owning_project(path: str, projects: Iterable[Project]) -> Project | None:
	for project in projects:
		for pkg in project.packages:
			if pkg.name == path:
				return project
	return None


def classify_classpath(
	classpath: Sequence[Any],
	*,
	projects: Sequence[Project],
	repo_root: Path,
	output_dir: Path,
) -> ClasspathPartition:
	projects = list(projects)
	mapped: list[Any] = []
	for entry in classpath:
		owner = entry if isinstance(entry, Project) else _owning_project(entry_path(entry), projects)
		mapped.append(owner if owner is not None else entry)

	workspace = [e for e in mapped if isinstance(e, Project)]
	others = [e for e in mapped if not isinstance(e, Project)]

	repo = str(repo_root)
	repo_libs = [e for e in others if _is_under(entry_path(e), repo)]
	others = [e for e in others if not _is_under(entry_path(e), repo)]

	out = str(output_dir)
	generated = [e for e in others if _is_under(entry_path(e), out)]
	libs = [e for e in others if not _is_under(entry_path(e), out)]

	return ClasspathPartition(
		workspace_modules=workspace,
		repo_artifacts=repo_libs,
		generated=generated,
		local_files=libs,
	)
