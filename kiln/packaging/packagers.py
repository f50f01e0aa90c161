# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Packaging strategies, keyed by package type.

A packager builds the task that produces a package file at a given path. It
may also rewrite the artifact spec before the path is derived, e.g. `sources`
produces a zip with the `sources` classifier whatever the project packages by
default. New kinds are registered on a `PackagerRegistry` before projects are
defined.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from kiln.core.artifact import ArtifactSpec
from kiln.packaging.archive import ArchiveTask

if TYPE_CHECKING:
	from kiln.core.project import Project
	from kiln.core.tasks import Task


class Packager:
	def materialize(self, project: Project, path: Path) -> Task:
		"""Return the task that produces `path`. Called at most once per path."""
		raise NotImplementedError

	def rewrite_spec(self, spec: ArtifactSpec) -> ArtifactSpec:
		return spec


class ArchivePackager(Packager):
	def __init__(self, kind: str) -> None:
		self.kind = kind

	def materialize(self, project: Project, path: Path) -> Task:
		return project.session.graph.file(path, cls=ArchiveTask, kind=self.kind, project_id=project.id)


class ClassifiedZipPackager(Packager):
	"""A zip of one project directory set, published under a fixed classifier."""

	def __init__(self, classifier: str) -> None:
		self.classifier = classifier

	def rewrite_spec(self, spec: ArtifactSpec) -> ArtifactSpec:
		return replace(spec, type="zip", classifier=self.classifier)

	def source_dirs(self, project: Project) -> list[Path]:
		raise NotImplementedError

	def materialize(self, project: Project, path: Path) -> Task:
		task = project.session.graph.file(path, cls=ArchiveTask, kind="zip", project_id=project.id)
		assert isinstance(task, ArchiveTask)
		return task.include(*self.source_dirs(project), as_=".", optional=True)


class SourcesPackager(ClassifiedZipPackager):
	def __init__(self) -> None:
		super().__init__("sources")

	def source_dirs(self, project: Project) -> list[Path]:
		return list(project.compile.sources)


class DocsPackager(ClassifiedZipPackager):
	def __init__(self) -> None:
		super().__init__("docs")

	def source_dirs(self, project: Project) -> list[Path]:
		return [project.docs]


class PackagerRegistry:
	def __init__(self) -> None:
		self._by_type: dict[str, Packager] = {}

	def __contains__(self, package_type: object) -> bool:
		return package_type in self._by_type

	def register(self, package_type: str, packager: Packager, *, force: bool = False) -> None:
		if not package_type:
			raise ValueError("package type must be non-empty")
		if package_type in self._by_type and not force:
			raise ValueError(f"packager for type '{package_type}' is already registered")
		self._by_type[package_type] = packager

	def lookup(self, package_type: str) -> Packager | None:
		return self._by_type.get(package_type)

	def types(self) -> list[str]:
		return sorted(self._by_type.keys())


def default_packagers() -> PackagerRegistry:
	registry = PackagerRegistry()
	registry.register("zip", ArchivePackager("zip"))
	registry.register("tar", ArchivePackager("tar"))
	registry.register("tgz", ArchivePackager("tgz"))
	registry.register("sources", SourcesPackager())
	registry.register("docs", DocsPackager())
	return registry
