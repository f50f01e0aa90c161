# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path

import pytest

from kiln.config import BuildOptions
from kiln.core.session import BuildSession


def make_session(tmp_path: Path, **overrides) -> BuildSession:
	"""
	A session rooted at `<tmp>/ws` with its repositories under `tmp`.

	Sessions created with the same `tmp_path` share the workspace and
	repositories, which is how tests model a second build invocation.
	"""
	ws = tmp_path / "ws"
	ws.mkdir(parents=True, exist_ok=True)
	fields = {
		"invocation_dir": ws,
		"local_repo": tmp_path / "m2",
		"release_to": tmp_path / "remote",
	}
	fields.update(overrides)
	return BuildSession(BuildOptions(**fields))


@pytest.fixture
def session(tmp_path: Path) -> BuildSession:
	return make_session(tmp_path)


@pytest.fixture
def new_session(tmp_path: Path):
	"""Factory for further sessions over the same workspace (a later invocation)."""

	def factory(**overrides) -> BuildSession:
		return make_session(tmp_path, **overrides)

	return factory
