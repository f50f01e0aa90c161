# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from kiln.core.artifact import ArtifactSpec
from kiln.core.tasks import FileTask, Task

if TYPE_CHECKING:
	from kiln.core.session import BuildSession

logger = logging.getLogger(__name__)

POM_NAMESPACE = "http://maven.apache.org/POM/4.0.0"


def pom_xml(spec: ArtifactSpec) -> str:
	"""Minimal POM: coordinates and packaging only."""
	project = ET.Element("project", {"xmlns": POM_NAMESPACE})
	ET.SubElement(project, "modelVersion").text = "4.0.0"
	ET.SubElement(project, "groupId").text = spec.group
	ET.SubElement(project, "artifactId").text = spec.id
	if spec.version:
		ET.SubElement(project, "version").text = spec.version
	ET.SubElement(project, "packaging").text = spec.type
	ET.indent(project, space="  ")
	return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(project, encoding="unicode") + "\n"


def define_pom(session: BuildSession, spec: ArtifactSpec) -> FileTask:
	"""
	The pom task for a package spec, located in the local repository.

	Packages that differ only by classifier share one pom; the first package
	declared decides its `packaging`.
	"""
	pom_spec = spec.pom_spec()
	path = session.repositories.locate(pom_spec)
	existing = session.graph.lookup(path)
	if isinstance(existing, FileTask) and existing.artifact_spec == pom_spec:
		return existing
	content = pom_xml(spec)

	def write_pom(task: Task) -> None:
		assert isinstance(task, FileTask)
		out = task.path
		out.parent.mkdir(parents=True, exist_ok=True)
		out.write_text(content, encoding="utf-8")
		logger.info("Writing %s", out)

	pom = session.graph.file(path, action=write_pom)
	pom.artifact_spec = pom_spec
	return pom
