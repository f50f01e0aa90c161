# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Build session: everything a single build invocation shares.

A session owns the task graph, the artifact index, the repositories, the
packager registry, the projects, and the root lifecycle tasks. Root tasks are
created once per session; each one runs the same-named task of the projects
local to the invocation directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from kiln.config import BuildOptions
from kiln.core.artifact import ArtifactIndex, ArtifactSpec, parse_spec, validate_spec
from kiln.core.project import LIFECYCLE_TASKS, Project
from kiln.core.repository import Repositories
from kiln.core.tasks import Task, TaskGraph
from kiln.errors import KilnError

if TYPE_CHECKING:
	from kiln.packaging.packagers import PackagerRegistry

logger = logging.getLogger(__name__)

ROOT_PREREQUISITES = {
	"build": (),
	"package": ("build",),
	"install": ("package",),
	"uninstall": (),
	"upload": ("package",),
}


class BuildSession:
	def __init__(self, options: BuildOptions | None = None, *, packagers: PackagerRegistry | None = None) -> None:
		if packagers is None:
			from kiln.packaging.packagers import default_packagers

			packagers = default_packagers()
		self.options = options if options is not None else BuildOptions()
		self.graph = TaskGraph()
		self.artifacts = ArtifactIndex()
		self.packagers = packagers
		self.repositories = Repositories(
			self.options.local_repo,
			release_to=self.options.release_to,
			signing_key=self.options.signing_key,
		)
		self._projects: dict[str, Project] = {}
		self._define_root_tasks()

	def _define_root_tasks(self) -> None:
		for name in LIFECYCLE_TASKS:
			self.local_task(name, prerequisites=ROOT_PREREQUISITES[name])
		self.graph.define("integration")
		self.graph.lookup("package").enhance(action=self._after_package)

	def local_task(self, name: str, *, prerequisites: tuple[str, ...] = ()) -> Task:
		"""Define a root task that runs `<project>:<name>` for the local projects."""

		def run_local(task: Task) -> None:
			for project in self.local_projects():
				logger.debug("%s %s", name, project.name)
				self.graph.resolve(project.task_name(name)).invoke()

		return self.graph.define(name, prerequisites=prerequisites, action=run_local)

	def _after_package(self, _task: Task) -> None:
		# Integration runs once, after all packaging, for a root-level invocation.
		# It is not a prerequisite of anything packaging depends on.
		if self.options.test and self.invoked_from_root():
			self.graph.resolve("integration").invoke()

	def define_project(self, name: str, *, parent: Project | None = None, base_dir: Path | None = None) -> Project:
		full_name = f"{parent.name}:{name}" if parent is not None else name
		if full_name in self._projects:
			raise KilnError(reason_code="PROJECT_DEFINED", message=f"project '{full_name}' is already defined", project_id=full_name.replace(":", "-"))
		project = Project(self, full_name, parent=parent, base_dir=base_dir)
		self._projects[full_name] = project
		if parent is not None:
			parent.children.append(project)
		for task_name in LIFECYCLE_TASKS:
			project.recursive_task(task_name)
		# Packaging always builds first, even when a package is used directly as a dependency.
		project.task("package", prerequisites=[project.task("build")])
		return project

	def project(self, name: str) -> Project:
		project = self._projects.get(name)
		if project is None:
			raise KilnError(reason_code="PROJECT_NOT_FOUND", message=f"no such project '{name}'")
		return project

	def projects(self) -> list[Project]:
		return list(self._projects.values())

	def top_level_projects(self) -> list[Project]:
		return [p for p in self._projects.values() if p.parent is None]

	def local_projects(self) -> list[Project]:
		"""
		Projects whose base directory is the invocation directory, or failing that
		the nearest enclosing directory that has any.
		"""
		directory = Path(os.path.abspath(self.options.invocation_dir))
		while True:
			found = [p for p in self._projects.values() if p.base_dir == directory]
			if found:
				return found
			if directory.parent == directory:
				break
			directory = directory.parent
		raise KilnError(
			reason_code="NO_LOCAL_PROJECT",
			message=f"no projects defined for directory {self.options.invocation_dir}",
		)

	def invoked_from_root(self) -> bool:
		try:
			local = self.local_projects()
		except KilnError:
			return False
		return all(p.parent is None for p in local)

	def artifact(self, spec: ArtifactSpec | str) -> Task:
		"""
		Task for an artifact: the in-tree package if some project produces it,
		otherwise its file in the local repository.
		"""
		if isinstance(spec, str):
			spec = parse_spec(spec)
		validate_spec(spec)
		found = self.artifacts.lookup(spec)
		if found is not None:
			return found
		path = self.repositories.locate(spec)
		task = self.graph.lookup(path)
		if task is None:
			task = self.graph.file(path, action=_missing_artifact)
			task.artifact_spec = spec
		return task

	def invoke(self, *names: str) -> None:
		self.graph.invoke(*names)


def _missing_artifact(task: Task) -> None:
	spec = task.artifact_spec
	raise KilnError(
		reason_code="ARTIFACT_NOT_FOUND",
		message="artifact is not in the local repository and remote fetch is not supported",
		spec=spec.to_string() if spec is not None else None,
		artifact_path=task.name,
		task_name=task.name,
	)
