# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import os
import xml.etree.ElementTree as ET
from pathlib import Path

from kiln.ide.idea import define_idea_tasks, module_file_path


def _buildfile(tmp_path: Path) -> Path:
	bf = tmp_path / "ws" / "buildfile.py"
	bf.parent.mkdir(parents=True, exist_ok=True)
	if not bf.exists():
		bf.write_text("def define(session):\n\tpass\n", encoding="utf-8")
	return bf


def _define(session, tmp_path: Path):
	app = session.define_project("app")
	app.group = "org.acme"
	app.version = "1.0"
	core = session.define_project("core", parent=app)
	core.package("zip")
	app.compile.classpath = [
		core,
		session.artifact("org.other:lib:zip:2.0"),
		tmp_path / "vendor" / "v.zip",
	]
	define_idea_tasks(session)
	return app, core


def test_module_and_project_files_are_written(tmp_path: Path, new_session) -> None:
	session = new_session(build_files=(_buildfile(tmp_path),))
	app, core = _define(session, tmp_path)
	session.invoke("idea")

	iml = ET.parse(app.path_to("app.iml")).getroot()
	manager = iml.find("component[@name='NewModuleRootManager']")
	assert manager is not None
	modules = [e.get("module-name") for e in manager.findall("orderEntry[@type='module']")]
	assert modules == ["app-core"]
	roots = [r.get("url") for r in manager.iter("root")]
	assert roots == [
		"jar://$MODULE_DIR$/../vendor/v.zip!/",
		"jar://$M2_REPO$/org/other/lib/2.0/lib-2.0.zip!/",
	]
	sources = [s.get("url") for s in manager.iter("sourceFolder")]
	assert sources == ["file://$MODULE_DIR$/src/main"]

	assert core.path_to("app-core.iml").exists()
	ipr = ET.parse(app.path_to("app.ipr")).getroot()
	paths = [m.get("filepath") for m in ipr.iter("module")]
	assert paths == ["$PROJECT_DIR$/app.iml", "$PROJECT_DIR$/core/app-core.iml"]
	assert not core.path_to("app-core.ipr").exists()


def test_module_file_path_nests_by_project_name(session) -> None:
	app = session.define_project("app")
	core = session.define_project("core", parent=app)
	deep = session.define_project("deep", parent=core)
	assert module_file_path(app) == "app.iml"
	assert module_file_path(deep) == "core/deep/app-core-deep.iml"


def test_files_follow_the_buildfile_timestamp(tmp_path: Path, new_session) -> None:
	bf = _buildfile(tmp_path)
	old = bf.stat().st_mtime - 100
	os.utime(bf, (old, old))
	session = new_session(build_files=(bf,))
	app, _ = _define(session, tmp_path)
	session.invoke("idea")
	iml = app.path_to("app.iml")
	written = iml.stat().st_mtime

	later = new_session(build_files=(bf,))
	_define(later, tmp_path)
	assert not later.graph.lookup(iml).needed()
	later.invoke("idea")
	assert iml.stat().st_mtime == written

	os.utime(bf, (written + 10, written + 10))
	again = new_session(build_files=(bf,))
	_define(again, tmp_path)
	task = again.graph.lookup(iml)
	assert task.needed()
	again.invoke("idea")
	assert not task.needed()
