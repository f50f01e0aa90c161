# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path

import pytest

from kiln.core.artifact import ArtifactOverrides, ArtifactSpec
from kiln.core.tasks import FileTask, Task
from kiln.errors import InvalidAttribute, UnknownPackageType
from kiln.packaging.archive import ArchiveTask
from kiln.packaging.package import declare_package
from kiln.packaging.packagers import Packager


def _app(session):
	app = session.define_project("app")
	app.group = "org.acme"
	app.version = "1.0"
	return app


def test_default_package_is_a_zip_under_target(session) -> None:
	app = _app(session)
	pkg = declare_package(session, app)
	assert isinstance(pkg, ArchiveTask)
	assert pkg.kind == "zip"
	assert pkg.artifact_spec == ArtifactSpec(group="org.acme", id="app", version="1.0", type="zip")
	assert Path(pkg.name) == app.target / "org.acme" / "app" / "1.0" / "app-1.0.zip"


def test_project_default_packaging_is_used(session) -> None:
	app = _app(session)
	app.compile.packaging = "tgz"
	pkg = app.package()
	assert pkg.artifact_spec.type == "tgz"
	assert pkg.kind == "tgz"


def test_declaring_twice_returns_same_package_and_wires_once(session) -> None:
	app = _app(session)
	first = declare_package(session, app, "zip")
	second = declare_package(session, app, "zip", {"version": "1.0", "group": "org.acme"})
	third = declare_package(session, app, "zip", ArtifactOverrides(id="app"))
	assert first is second is third
	assert app.packages == [first]
	assert len(session.graph.lookup("app:uninstall").actions) == 1
	assert len(session.graph.lookup("app:upload").actions) == 1
	assert session.graph.lookup("app:package").prerequisites.count(first.name) == 1


def test_different_specs_give_different_packages(session) -> None:
	app = _app(session)
	zip_pkg = app.package("zip")
	tests_pkg = app.package("zip", classifier="tests")
	tar_pkg = app.package("tar")
	assert len({zip_pkg.name, tests_pkg.name, tar_pkg.name}) == 3
	assert app.packages == [zip_pkg, tests_pkg, tar_pkg]


def test_overrides_are_not_mutated(session) -> None:
	app = _app(session)
	overrides = {"classifier": "extra"}
	app_pkg = declare_package(session, app, "zip", overrides)
	assert overrides == {"classifier": "extra"}
	assert app_pkg.artifact_spec.classifier == "extra"


def test_unknown_package_type(session) -> None:
	app = _app(session)
	with pytest.raises(UnknownPackageType) as excinfo:
		declare_package(session, app, "war")
	assert excinfo.value.reason_code == "UNKNOWN_PACKAGE_TYPE"
	assert excinfo.value.project_id == "app"
	assert app.packages == []


def test_unrecognized_override_key(session) -> None:
	app = _app(session)
	with pytest.raises(InvalidAttribute):
		declare_package(session, app, "zip", {"flavour": "vanilla"})
	with pytest.raises(InvalidAttribute):
		app.package("zip", classifer="sources")
	assert app.packages == []


def test_sources_package_is_a_classified_zip(session) -> None:
	app = _app(session)
	app.compile.packaging = "tar"
	pkg = app.package("sources")
	assert pkg.artifact_spec == ArtifactSpec(group="org.acme", id="app", version="1.0", type="zip", classifier="sources")
	assert Path(pkg.name).name == "app-1.0-sources.zip"


def test_docs_package_is_a_classified_zip(session) -> None:
	app = _app(session)
	pkg = app.package("docs")
	assert (pkg.artifact_spec.type, pkg.artifact_spec.classifier) == ("zip", "docs")


def test_sources_and_explicit_zip_with_classifier_are_the_same_package(session) -> None:
	app = _app(session)
	sources = app.package("sources")
	again = app.package("zip", classifier="sources")
	assert sources is again
	assert app.packages == [sources]


def test_child_packages_use_inherited_coordinates(session) -> None:
	app = _app(session)
	core = session.define_project("core", parent=app)
	pkg = core.package("zip")
	assert pkg.artifact_spec == ArtifactSpec(group="org.acme", id="app-core", version="1.0", type="zip")
	assert Path(pkg.name).is_relative_to(core.target)


def test_package_is_wired_into_lifecycle(session) -> None:
	app = _app(session)
	pkg = app.package("zip")
	installed = session.repositories.locate(pkg.artifact_spec)
	assert pkg.name in session.graph.lookup("app:package").prerequisites
	assert "app:build" in pkg.prerequisites
	assert str(installed) in session.graph.lookup("app:install").prerequisites
	assert pkg.pom.name in session.graph.lookup("app:install").prerequisites
	assert session.graph.lookup(installed).prerequisites == [pkg.name]


def test_package_is_registered_as_artifact(session) -> None:
	app = _app(session)
	pkg = app.package("zip")
	assert session.artifacts.lookup(pkg.artifact_spec) is pkg
	assert session.artifacts.lookup(pkg.artifact_spec.pom_spec()) is pkg.pom
	assert session.artifact("org.acme:app:zip:1.0") is pkg
	assert pkg.pom.path == session.repositories.locate(pkg.artifact_spec.pom_spec())


def test_unknown_artifacts_come_from_local_repository(session) -> None:
	task = session.artifact("org.other:lib:zip:2.0")
	assert isinstance(task, FileTask)
	assert task.path == session.options.local_repo.absolute() / "org" / "other" / "lib" / "2.0" / "lib-2.0.zip"


class _CountingPackager(Packager):
	def __init__(self) -> None:
		self.calls = 0

	def rewrite_spec(self, spec: ArtifactSpec) -> ArtifactSpec:
		return ArtifactSpec(group=spec.group, id=spec.id, version=spec.version, type="txt", classifier="notes")

	def materialize(self, project, path: Path) -> Task:
		self.calls += 1

		def write(task) -> None:
			task.path.parent.mkdir(parents=True, exist_ok=True)
			task.path.write_text("notes", encoding="utf-8")

		return project.file(path, action=write)


def test_custom_packager_registration(session) -> None:
	packager = _CountingPackager()
	session.packagers.register("notes", packager)
	app = _app(session)
	pkg = app.package("notes")
	assert app.package("notes") is pkg
	assert packager.calls == 1
	assert Path(pkg.name).name == "app-1.0-notes.txt"
	session.invoke("package")
	assert Path(pkg.name).read_text(encoding="utf-8") == "notes"


def test_register_twice_needs_force(session) -> None:
	with pytest.raises(ValueError):
		session.packagers.register("zip", _CountingPackager())
	session.packagers.register("zip", _CountingPackager(), force=True)


@pytest.mark.parametrize("field", ["group", "id", "version", "type"])
def test_empty_override_is_rejected_not_defaulted(session, field: str) -> None:
	app = _app(session)
	with pytest.raises(InvalidAttribute):
		app.package("zip", **{field: ""})
	assert app.packages == []


def test_unknown_type_is_reported_before_attribute_checks(session) -> None:
	app = _app(session)
	with pytest.raises(UnknownPackageType):
		declare_package(session, app, "tar.gz")
