# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Task graph.

Tasks are named nodes with ordered prerequisites and actions. Invoking a task
invokes its prerequisites first, then runs its actions if the task is needed.
A task is marked complete only after all of its actions succeed, so invoking
it again after a failure re-attempts it (and only it, plus whatever of its
prerequisites did not complete).

File tasks are named by absolute path and are needed when the file is missing
or older than one of their timestamped prerequisites.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterable

from kiln.errors import KilnError, TaskFailure

if TYPE_CHECKING:
	from kiln.core.artifact import ArtifactSpec


Action = Callable[["Task"], None]


class Task:
	def __init__(self, name: str, graph: TaskGraph, *, project_id: str | None = None) -> None:
		self.name = name
		self.graph = graph
		self.project_id = project_id
		self.prerequisites: list[str] = []
		self.actions: list[Action] = []
		self.comment: str | None = None
		# Set when the task is also an addressable artifact (packages, poms).
		self.artifact_spec: ArtifactSpec | None = None
		self.pom: FileTask | None = None
		self._complete = False
		self._running = False

	def __repr__(self) -> str:
		return f"{type(self).__name__}({self.name!r})"

	def __str__(self) -> str:
		return self.name

	def enhance(self, prerequisites: Iterable[str | Task] = (), action: Action | None = None) -> Task:
		for prereq in prerequisites:
			name = prereq.name if isinstance(prereq, Task) else _task_name(prereq)
			if name not in self.prerequisites:
				self.prerequisites.append(name)
		if action is not None:
			self.actions.append(action)
		return self

	@property
	def complete(self) -> bool:
		return self._complete

	def reenable(self) -> None:
		self._complete = False

	def prerequisite_tasks(self) -> list[Task]:
		return [self.graph.resolve(name) for name in self.prerequisites]

	def invoke(self) -> None:
		# A task reached again while its own actions are on the stack is skipped:
		# e.g. a hook that runs from inside `package` must not re-enter it.
		if self._complete or self._running:
			return
		self._running = True
		try:
			for prereq in self.prerequisite_tasks():
				prereq.invoke()
			if self.needed():
				self.execute()
			self._complete = True
		finally:
			self._running = False

	def execute(self) -> None:
		for action in list(self.actions):
			try:
				action(self)
			except KilnError:
				raise
			except Exception as err:
				raise TaskFailure(
					f"{type(err).__name__}: {err}",
					task_name=self.name,
					project_id=self.project_id,
					artifact_path=self.name if isinstance(self, FileTask) else None,
				) from err

	def needed(self) -> bool:
		return True

	def timestamp(self) -> float | None:
		"""Modification time for file-backed tasks; None for plain tasks."""
		return None


class FileTask(Task):
	@property
	def path(self) -> Path:
		return Path(self.name)

	def needed(self) -> bool:
		own = self.timestamp()
		if own is None:
			return True
		for prereq in self.prerequisite_tasks():
			ts = prereq.timestamp()
			if ts is not None and ts > own:
				return True
		return False

	def timestamp(self) -> float | None:
		try:
			return self.path.stat().st_mtime
		except FileNotFoundError:
			return None


def _task_name(name: str | os.PathLike[str]) -> str:
	if isinstance(name, os.PathLike):
		return os.path.abspath(os.fspath(name))
	return name


class TaskGraph:
	"""Registry of tasks by name; defining an existing name enhances it."""

	def __init__(self) -> None:
		self._tasks: dict[str, Task] = {}

	def __contains__(self, name: object) -> bool:
		if not isinstance(name, (str, os.PathLike)):
			return False
		return _task_name(name) in self._tasks

	def names(self) -> list[str]:
		return list(self._tasks.keys())

	def lookup(self, name: str | os.PathLike[str]) -> Task | None:
		return self._tasks.get(_task_name(name))

	def define(
		self,
		name: str | os.PathLike[str],
		*,
		prerequisites: Iterable[str | Task] = (),
		action: Action | None = None,
		cls: type[Task] = Task,
		**kwargs: Any,
	) -> Task:
		key = _task_name(name)
		task = self._tasks.get(key)
		if task is None:
			task = cls(key, self, **kwargs)
			self._tasks[key] = task
		return task.enhance(prerequisites, action)

	def file(
		self,
		path: str | os.PathLike[str],
		*,
		prerequisites: Iterable[str | Task] = (),
		action: Action | None = None,
		cls: type[FileTask] = FileTask,
		**kwargs: Any,
	) -> FileTask:
		task = self.define(Path(os.path.abspath(os.fspath(path))), prerequisites=prerequisites, action=action, cls=cls, **kwargs)
		if not isinstance(task, FileTask):
			raise KilnError(reason_code="TASK_KIND_MISMATCH", message=f"task '{task.name}' is not a file task")
		return task

	def resolve(self, name: str) -> Task:
		task = self._tasks.get(name)
		if task is not None:
			return task
		# Plain files on disk act as up-to-date file tasks.
		if os.path.isabs(name) and os.path.exists(name):
			return self.file(name)
		raise KilnError(reason_code="TASK_NOT_FOUND", message=f"don't know how to build task '{name}'", task_name=name)

	def invoke(self, *names: str) -> None:
		for name in names:
			self.resolve(name).invoke()
