# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Artifact specifications and the per-session artifact index.

An artifact is addressed by (group, id, version, type, classifier). The same
tuple always maps to the same relative path, and tuples that differ in any
attribute map to different paths: every attribute occupies its own path
segment or is separated from its neighbour by a character it may not contain.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, Mapping

from kiln.errors import InvalidAttribute

if TYPE_CHECKING:
	from kiln.core.tasks import FileTask, Task


ARTIFACT_ATTRIBUTES = ("group", "id", "version", "type", "classifier")


@dataclass(frozen=True)
class ArtifactSpec:
	group: str
	id: str
	version: str | None
	type: str
	classifier: str | None = None

	def __str__(self) -> str:
		return self.to_string()

	def to_string(self) -> str:
		parts = [self.group, self.id, self.type]
		if self.classifier:
			parts.append(self.classifier)
		if self.version:
			parts.append(self.version)
		return ":".join(parts)

	def to_dict(self) -> dict[str, Any]:
		return {
			"group": self.group,
			"id": self.id,
			"version": self.version,
			"type": self.type,
			"classifier": self.classifier,
		}

	def pom_spec(self) -> ArtifactSpec:
		return replace(self, type="pom", classifier=None)


@dataclass(frozen=True)
class ArtifactOverrides:
	"""Optional attributes a caller may force on a package's artifact spec."""

	group: str | None = None
	id: str | None = None
	version: str | None = None
	type: str | None = None
	classifier: str | None = None

	@classmethod
	def from_mapping(cls, data: Mapping[str, Any]) -> ArtifactOverrides:
		unknown = sorted(set(data.keys()) - set(ARTIFACT_ATTRIBUTES))
		if unknown:
			raise InvalidAttribute(f"unrecognized artifact attribute(s): {', '.join(map(str, unknown))}")
		for key, value in data.items():
			if value is not None and not isinstance(value, str):
				raise InvalidAttribute(f"artifact attribute '{key}' must be a string, got {type(value).__name__}")
		return cls(**dict(data))


def _check_value(name: str, value: str | None, *, required: bool) -> None:
	if value is None:
		if required:
			raise InvalidAttribute(f"artifact attribute '{name}' is required")
		return
	if not value:
		raise InvalidAttribute(f"artifact attribute '{name}' must be non-empty")
	if "/" in value or "\\" in value:
		raise InvalidAttribute(f"artifact attribute '{name}' must not contain path separators, got: {value}")
	if value in (".", ".."):
		raise InvalidAttribute(f"artifact attribute '{name}' must not be a relative path segment, got: {value}")
	# Group dots become repository directories; every segment must be non-empty.
	if name == "group" and "" in value.split("."):
		raise InvalidAttribute(f"artifact group must not have empty segments, got: {value}")
	if name == "type" and "." in value:
		raise InvalidAttribute(f"artifact type must not contain '.', got: {value}")
	if name == "classifier" and "." in value:
		raise InvalidAttribute(f"artifact classifier must not contain '.', got: {value}")


def validate_spec(spec: ArtifactSpec) -> ArtifactSpec:
	_check_value("group", spec.group, required=True)
	_check_value("id", spec.id, required=True)
	_check_value("version", spec.version, required=False)
	_check_value("type", spec.type, required=True)
	_check_value("classifier", spec.classifier, required=False)
	return spec


def parse_spec(text: str) -> ArtifactSpec:
	"""Parse `group:id:type[:classifier]:version`."""
	parts = text.split(":")
	if len(parts) == 4:
		group, id_, type_, version = parts
		classifier = None
	elif len(parts) == 5:
		group, id_, type_, classifier, version = parts
	else:
		raise InvalidAttribute(f"expected group:id:type[:classifier]:version, got: {text}")
	return validate_spec(ArtifactSpec(group=group, id=id_, version=version, type=type_, classifier=classifier))


def file_name(spec: ArtifactSpec) -> str:
	stem = spec.id
	if spec.version:
		stem += f"-{spec.version}"
	if spec.classifier:
		stem += f"-{spec.classifier}"
	return f"{stem}.{spec.type}"


def spec_relative_path(spec: ArtifactSpec) -> PurePosixPath:
	"""Deterministic relative path for a package of `spec` under a target directory."""
	validate_spec(spec)
	if spec.version:
		return PurePosixPath(spec.group, spec.id, spec.version, file_name(spec))
	return PurePosixPath(spec.group, spec.id, file_name(spec))


class ArtifactIndex:
	"""
	Artifacts produced in-tree, keyed by spec.

	Dependency resolution consults this first, so a spec produced by some project
	resolves to that project's package instead of the local repository.
	"""

	def __init__(self) -> None:
		self._by_spec: dict[ArtifactSpec, Task] = {}

	def __len__(self) -> int:
		return len(self._by_spec)

	def register(self, package: Task, pom: FileTask) -> None:
		if package.artifact_spec is None or pom.artifact_spec is None:
			raise ValueError(f"cannot register '{package.name}': not an artifact")
		self._by_spec[package.artifact_spec] = package
		self._by_spec.setdefault(pom.artifact_spec, pom)

	def lookup(self, spec: ArtifactSpec) -> Task | None:
		return self._by_spec.get(spec)

	def specs(self) -> list[ArtifactSpec]:
		return sorted(self._by_spec.keys(), key=lambda s: s.to_string())
