# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class KilnError(Exception):
	"""
	A structured, serializable error for kiln.

	Declaration-time errors fail fast; execution-time errors carry enough
	context (task, project id, target path) to re-run only the affected task.
	"""

	reason_code: str
	message: str
	project_id: str | None = None
	task_name: str | None = None
	artifact_path: str | None = None
	spec: str | None = None

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"project_id": self.project_id,
			"task_name": self.task_name,
			"artifact_path": self.artifact_path,
			"spec": self.spec,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.project_id:
			parts.append(f"project={self.project_id}")
		if self.task_name:
			parts.append(f"task={self.task_name}")
		if self.spec:
			parts.append(f"spec={self.spec}")
		if self.artifact_path:
			parts.append(f"artifact_path={self.artifact_path}")
		return " ".join(parts)


class UnknownPackageType(KilnError):
	def __init__(self, package_type: str, *, project_id: str | None = None) -> None:
		super().__init__(
			reason_code="UNKNOWN_PACKAGE_TYPE",
			message=f"don't know how to create a package of type {package_type}",
			project_id=project_id,
		)


class InvalidAttribute(KilnError):
	def __init__(self, message: str, *, project_id: str | None = None) -> None:
		super().__init__(reason_code="INVALID_ATTRIBUTE", message=message, project_id=project_id)


class TaskFailure(KilnError):
	"""A task action raised; the task is left incomplete and dependents do not run."""

	def __init__(
		self,
		message: str,
		*,
		task_name: str,
		project_id: str | None = None,
		artifact_path: str | None = None,
	) -> None:
		super().__init__(
			reason_code="TASK_FAILED",
			message=message,
			project_id=project_id,
			task_name=task_name,
			artifact_path=artifact_path,
		)


class UploadFailure(KilnError):
	def __init__(self, message: str, *, artifact_path: str | None = None, spec: str | None = None) -> None:
		super().__init__(reason_code="UPLOAD_FAILED", message=message, artifact_path=artifact_path, spec=spec)
