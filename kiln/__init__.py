# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
kiln: packaging for a project-based build tool.

Layers:
  core: task graph, artifact specs, repositories, projects, build session
  packaging: packagers, archives, poms, package declaration and lifecycle wiring
  ide: classpath classification and IDEA project files
"""

__all__ = ["core", "packaging", "ide"]
