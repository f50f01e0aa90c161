# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

from kiln.core.tasks import Action, FileTask, Task

if TYPE_CHECKING:
	from kiln.core.session import BuildSession


# Tasks every project defines; a parent's task depends on its children's.
LIFECYCLE_TASKS = ("build", "package", "install", "uninstall", "upload")


@dataclass
class CompileSettings:
	"""What packaging needs to know about compilation (compilers themselves live elsewhere)."""

	sources: list[Path]
	target: Path
	packaging: str | None = None
	classpath: list[Any] = field(default_factory=list)


class Project:
	"""
	A node in the project hierarchy.

	`name` is `:`-separated (`foo:bar`); `id` replaces the separators with dashes.
	`group` and `version` fall back to the parent's values when unset; the
	top-level project's group defaults to its own name.
	"""

	def __init__(self, session: BuildSession, name: str, *, parent: Project | None = None, base_dir: Path | None = None) -> None:
		self.session = session
		self.name = name
		self.parent = parent
		if base_dir is None:
			base_dir = parent.base_dir / name.split(":")[-1] if parent is not None else session.options.invocation_dir
		self.base_dir = Path(base_dir).absolute()
		self._group: str | None = None
		self._version: str | None = None
		self.packages: list[Task] = []
		self.children: list[Project] = []
		self.compile = CompileSettings(
			sources=[self.path_to("src", "main")],
			target=self.path_to("target", "classes"),
		)
		self.docs = self.path_to("target", "doc")

	def __repr__(self) -> str:
		return f"Project({self.name!r})"

	@property
	def id(self) -> str:
		return self.name.replace(":", "-")

	@property
	def group(self) -> str:
		if self._group is not None:
			return self._group
		if self.parent is not None:
			return self.parent.group
		return self.name

	@group.setter
	def group(self, value: str | None) -> None:
		self._group = value

	@property
	def version(self) -> str | None:
		if self._version is not None:
			return self._version
		if self.parent is not None:
			return self.parent.version
		return None

	@version.setter
	def version(self, value: str | None) -> None:
		self._version = value

	@property
	def root(self) -> Project:
		return self.parent.root if self.parent is not None else self

	@property
	def target(self) -> Path:
		return self.path_to("target")

	def descendants(self) -> list[Project]:
		out: list[Project] = []
		for child in self.children:
			out.append(child)
			out.extend(child.descendants())
		return out

	def path_to(self, *parts: str) -> Path:
		return self.base_dir.joinpath(*parts)

	def task_name(self, name: str) -> str:
		return f"{self.name}:{name}"

	def task(self, name: str, *, prerequisites: Iterable[str | Task] = (), action: Action | None = None) -> Task:
		return self.session.graph.define(self.task_name(name), prerequisites=prerequisites, action=action, project_id=self.id)

	def file(self, path: Path, *, prerequisites: Iterable[str | Task] = (), action: Action | None = None) -> FileTask:
		return self.session.graph.file(path, prerequisites=prerequisites, action=action, project_id=self.id)

	def recursive_task(self, name: str) -> Task:
		task = self.task(name)
		if self.parent is not None:
			self.parent.task(name).enhance([task])
		return task

	def package(self, package_type: str | None = None, **attrs: Any) -> Task:
		"""Shorthand for `declare_package`; keyword arguments are artifact overrides."""
		from kiln.packaging.package import declare_package

		return declare_package(self.session, self, package_type, attrs or None)
