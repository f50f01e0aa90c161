# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Buildfiles.

A buildfile is a Python file exposing `define(session)`. It defines projects
on the session and declares their packages:

	def define(session):
		app = session.define_project("app")
		app.version = "1.0"
		app.package("zip").include(app.path_to("README"))
		app.package("sources")
"""

from __future__ import annotations

import importlib.util
from pathlib import Path

from kiln.core.session import BuildSession
from kiln.errors import KilnError

DEFAULT_BUILDFILE = "buildfile.py"


def load_buildfile(path: Path, session: BuildSession) -> None:
	if not path.exists():
		raise KilnError(reason_code="BUILDFILE_MISSING", message=f"buildfile not found: {path}", artifact_path=str(path))
	spec = importlib.util.spec_from_file_location("kiln_buildfile", path)
	if spec is None or spec.loader is None:
		raise KilnError(reason_code="BUILDFILE_INVALID", message=f"cannot load buildfile: {path}", artifact_path=str(path))
	module = importlib.util.module_from_spec(spec)
	spec.loader.exec_module(module)
	define = getattr(module, "define", None)
	if not callable(define):
		raise KilnError(reason_code="BUILDFILE_INVALID", message="buildfile must define a 'define(session)' function", artifact_path=str(path))
	define(session)
