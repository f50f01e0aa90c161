# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Package declaration and lifecycle wiring.

`declare_package` turns a package type plus optional artifact overrides into a
package task, and splices it into the project's lifecycle:

- `<project>:package` depends on the package; the package depends on `<project>:build`
- `<project>:install` copies it (and its pom) into the local repository
- `<project>:uninstall` removes the installed copy and pom
- `<project>:upload` writes the pom, uploads it, then uploads the package

Declaring the same effective spec twice returns the same task and wires it once.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

from kiln.core.artifact import ArtifactOverrides, ArtifactSpec, spec_relative_path, validate_spec
from kiln.core.tasks import FileTask, Task
from kiln.errors import UnknownPackageType
from kiln.packaging.pom import define_pom

if TYPE_CHECKING:
	from kiln.core.project import Project
	from kiln.core.session import BuildSession

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE_TYPE = "zip"


def resolve_spec(
	project: Project,
	package_type: str,
	overrides: ArtifactOverrides | Mapping[str, Any] | None,
) -> ArtifactSpec:
	if overrides is None:
		overrides = ArtifactOverrides()
	elif not isinstance(overrides, ArtifactOverrides):
		overrides = ArtifactOverrides.from_mapping(overrides)
	return validate_spec(
		ArtifactSpec(
			group=overrides.group if overrides.group is not None else project.group,
			id=overrides.id if overrides.id is not None else project.id,
			version=overrides.version if overrides.version is not None else project.version,
			type=overrides.type if overrides.type is not None else package_type,
			classifier=overrides.classifier,
		)
	)


def declare_package(
	session: BuildSession,
	project: Project,
	package_type: str | None = None,
	overrides: ArtifactOverrides | Mapping[str, Any] | None = None,
) -> Task:
	package_type = package_type or project.compile.packaging or DEFAULT_PACKAGE_TYPE
	packager = session.packagers.lookup(package_type)
	if packager is None:
		raise UnknownPackageType(package_type, project_id=project.id)
	spec = resolve_spec(project, package_type, overrides)
	spec = validate_spec(packager.rewrite_spec(spec))

	path = project.target / Path(spec_relative_path(spec))
	package = session.graph.lookup(path)
	if package is None:
		package = packager.materialize(project, path)

	if any(p.name == package.name for p in project.packages):
		return package

	package.artifact_spec = spec
	pom = define_pom(session, spec)
	package.pom = pom

	project.task("package", prerequisites=[package])
	package.enhance([project.task("build")])

	installed = _define_installed(session, project, package, spec)
	project.task("install", prerequisites=[installed, pom])
	project.task("uninstall", action=_uninstall_action(project, installed, pom))
	project.task("upload", action=_upload_action(session, package, pom))

	project.packages.append(package)
	session.artifacts.register(package, pom)
	logger.debug("declared package %s for %s at %s", spec.to_string(), project.name, path)
	return package


def _define_installed(session: BuildSession, project: Project, package: Task, spec: ArtifactSpec) -> FileTask:
	dest = session.repositories.locate(spec)
	src = Path(package.name)

	def install(_task: Task) -> None:
		session.repositories.install(src, dest)

	return project.file(dest, prerequisites=[package], action=install)


def _uninstall_action(project: Project, installed: FileTask, pom: FileTask):
	def uninstall(_task: Task) -> None:
		for path in (installed.path, pom.path):
			if path.exists():
				path.unlink()
				logger.info("Uninstalled %s", path)
		# The files are gone; a later install in this session must copy again,
		# through this project's install, its ancestors' and the root one.
		installed.reenable()
		pom.reenable()
		graph = project.session.graph
		p: Project | None = project
		while p is not None:
			graph.resolve(p.task_name("install")).reenable()
			p = p.parent
		graph.resolve("install").reenable()

	return uninstall


def _upload_action(session: BuildSession, package: Task, pom: FileTask):
	def upload(_task: Task) -> None:
		package.invoke()
		pom.invoke()
		assert package.artifact_spec is not None and pom.artifact_spec is not None
		session.repositories.upload(pom.artifact_spec, pom.path)
		session.repositories.upload(package.artifact_spec, Path(package.name))

	return upload
