# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
IDEA project files.

Every project gets a `<id>.iml` module file; each top-level project also gets
a `<id>.ipr` listing all module files under it. The files depend on the
build-definition files only: they are rewritten when a buildfile changes.
"""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import TYPE_CHECKING

from kiln.core.project import Project
from kiln.core.tasks import FileTask, Task
from kiln.ide.classify import classify_classpath, entry_path, expand_classpath

if TYPE_CHECKING:
	from kiln.core.session import BuildSession

logger = logging.getLogger(__name__)

EXCLUDES = ("**/.svn/", "**/CVS/")


def _write_xml(path: Path, root: ET.Element) -> None:
	ET.indent(root, space="  ")
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(ET.tostring(root, encoding="unicode") + "\n", encoding="utf-8")
	logger.info("Writing %s", path)


def _relative(project: Project, path: str | os.PathLike[str]) -> str:
	return Path(os.path.relpath(os.fspath(path), project.base_dir)).as_posix()


def module_xml(session: BuildSession, project: Project) -> ET.Element:
	repo_root = session.repositories.local
	parts = classify_classpath(
		expand_classpath(project),
		projects=session.projects(),
		repo_root=repo_root,
		output_dir=project.base_dir,
	)

	module = ET.Element("module", {"version": "4", "relativePaths": "false", "type": "JAVA_MODULE"})
	ET.SubElement(module, "component", {"name": "ModuleRootManager"})
	manager = ET.SubElement(module, "component", {"name": "NewModuleRootManager", "inherit-compiler-output": "false"})
	ET.SubElement(manager, "output", {"url": f"file://$MODULE_DIR$/{_relative(project, project.compile.target)}"})
	ET.SubElement(manager, "exclude-output")

	content = ET.SubElement(manager, "content", {"url": "file://$MODULE_DIR$"})
	sources = [_relative(project, s) for s in project.compile.sources]
	sources += [_relative(project, entry_path(g)) for g in parts.generated]
	for src in sorted(set(sources)):
		ET.SubElement(content, "sourceFolder", {"url": f"file://$MODULE_DIR$/{src}", "isTestSource": "false"})
	ET.SubElement(content, "excludeFolder", {"url": f"file://$MODULE_DIR$/{_relative(project, project.compile.target)}"})

	ET.SubElement(manager, "orderEntry", {"type": "sourceFolder", "forTests": "false"})
	ET.SubElement(manager, "orderEntry", {"type": "inheritedJdk"})

	for module_id in sorted({p.id for p in parts.workspace_modules}):
		ET.SubElement(manager, "orderEntry", {"type": "module", "module-name": module_id})

	libs = [f"$MODULE_DIR$/{_relative(project, entry_path(e))}" for e in parts.local_files]
	libs += ["$M2_REPO$" + entry_path(e)[len(str(repo_root)):] for e in parts.repo_artifacts]
	for lib in libs:
		entry = ET.SubElement(manager, "orderEntry", {"type": "module-library"})
		library = ET.SubElement(entry, "library")
		classes = ET.SubElement(library, "CLASSES")
		ET.SubElement(classes, "root", {"url": f"jar://{lib}!/"})
		ET.SubElement(library, "JAVADOC")
		ET.SubElement(library, "SOURCES")

	ET.SubElement(manager, "orderEntryProperties")
	return module


def module_file_path(project: Project) -> str:
	"""Path of a project's module file relative to its top-level project."""
	segments = project.name.split(":")[1:]
	return "/".join([*segments, f"{project.id}.iml"])


def project_xml(project: Project) -> ET.Element:
	root = ET.Element("project", {"version": "4"})
	manager = ET.SubElement(root, "component", {"name": "ProjectModuleManager"})
	modules = ET.SubElement(manager, "modules")
	for sub in [project, *project.descendants()]:
		path = module_file_path(sub)
		ET.SubElement(modules, "module", {"fileurl": f"file://$PROJECT_DIR$/{path}", "filepath": f"$PROJECT_DIR$/{path}"})
	return root


def define_idea_tasks(session: BuildSession) -> Task:
	"""Wire `idea` for every defined project; call after all projects are defined."""
	sources = [Path(os.path.abspath(p)) for p in session.options.build_files if Path(p).exists()]
	for project in session.projects():
		idea = project.recursive_task("idea")
		iml = project.path_to(f"{project.id}.iml")
		idea.enhance([_idea_file(project, iml, sources, lambda p=project: module_xml(session, p))])
		if project.parent is None:
			ipr = project.path_to(f"{project.id}.ipr")
			idea.enhance([_idea_file(project, ipr, sources, lambda p=project: project_xml(p))])
	return session.local_task("idea")


def _idea_file(project: Project, path: Path, sources: list[Path], render) -> FileTask:
	def write(task: Task) -> None:
		assert isinstance(task, FileTask)
		_write_xml(task.path, render())

	return project.file(path, prerequisites=sources, action=write)
