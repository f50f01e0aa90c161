# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path

from kiln.ide.classify import classify_classpath, expand_classpath


def _workspace(session):
	app = session.define_project("app")
	app.group = "org.acme"
	app.version = "1.0"
	core = session.define_project("core", parent=app)
	web = session.define_project("web", parent=app)
	core.package("zip")
	return app, core, web


def test_entries_fall_into_disjoint_partitions(session) -> None:
	_, core, web = _workspace(session)
	repo = session.repositories.local
	repo_lib = session.artifact("org.other:lib:zip:2.0")
	generated = web.path_to("target", "generated", "schema")
	local_lib = Path("/opt/libs/vendor.zip")
	classpath = [local_lib, core.packages[0], repo_lib, generated, str(repo / "org" / "x" / "y.zip")]

	parts = classify_classpath(classpath, projects=session.projects(), repo_root=repo, output_dir=web.base_dir)

	assert parts.workspace_modules == [core]
	assert parts.repo_artifacts == [repo_lib, str(repo / "org" / "x" / "y.zip")]
	assert parts.generated == [generated]
	assert parts.local_files == [local_lib]
	total = len(parts.workspace_modules) + len(parts.repo_artifacts) + len(parts.generated) + len(parts.local_files)
	assert total == len(classpath)


def test_package_path_as_string_maps_to_its_project(session) -> None:
	_, core, web = _workspace(session)
	parts = classify_classpath(
		[core.packages[0].name],
		projects=session.projects(),
		repo_root=session.repositories.local,
		output_dir=web.base_dir,
	)
	assert parts.workspace_modules == [core]
	assert parts.to_dict()["workspace_modules"] == ["app-core"]


def test_prefix_match_respects_path_boundaries(session) -> None:
	_, _, web = _workspace(session)
	repo = session.repositories.local
	sibling = Path(f"{repo}-mirror") / "lib.zip"
	parts = classify_classpath([sibling], projects=[], repo_root=repo, output_dir=web.base_dir)
	assert parts.repo_artifacts == []
	assert parts.local_files == [sibling]


def test_empty_classpath(session) -> None:
	_, _, web = _workspace(session)
	parts = classify_classpath([], projects=session.projects(), repo_root=session.repositories.local, output_dir=web.base_dir)
	assert parts.to_dict() == {"workspace_modules": [], "repo_artifacts": [], "generated": [], "local_files": []}


def test_project_dependencies_expand_to_their_packages(session) -> None:
	_, core, web = _workspace(session)
	bare = session.define_project("bare", parent=core)
	web.compile.classpath = [core, bare, web.compile.target]
	expanded = expand_classpath(web)
	assert expanded == [core.packages[0], bare]
	parts = classify_classpath(expanded, projects=session.projects(), repo_root=session.repositories.local, output_dir=web.base_dir)
	assert parts.workspace_modules == [core, bare]
	assert parts.local_files == []
