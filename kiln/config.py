# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Build options and the settings file (v0).

Settings file shape:

	{
	  "format": "kiln-settings",
	  "version": 0,
	  "repositories": {"local": "...", "release_to": "..."},
	  "signing_key": "..."
	}

Relative paths are resolved against the settings file's directory.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


def default_local_repo() -> Path:
	env = os.environ.get("KILN_REPO")
	if env:
		return Path(env)
	return Path.home() / ".m2" / "repository"


@dataclass(frozen=True)
class BuildOptions:
	invocation_dir: Path = field(default_factory=Path.cwd)
	local_repo: Path = field(default_factory=default_local_repo)
	release_to: Path | None = None
	signing_key: Path | None = None
	test: bool = False
	trace: bool = False
	build_files: tuple[Path, ...] = ()


@dataclass(frozen=True)
class SettingsV0:
	local_repo: Path | None = None
	release_to: Path | None = None
	signing_key: Path | None = None


def _opt_path(base: Path, raw: Any, *, what: str) -> Path | None:
	if raw is None:
		return None
	if not isinstance(raw, str) or not raw:
		raise ValueError(f"settings field '{what}' must be a non-empty string")
	p = Path(raw).expanduser()
	return p if p.is_absolute() else base / p


def load_settings_v0(path: Path) -> SettingsV0:
	data = json.loads(path.read_text(encoding="utf-8"))
	if not isinstance(data, dict):
		raise ValueError("settings file must be a JSON object")
	if data.get("format") != "kiln-settings" or data.get("version") != 0:
		raise ValueError("unsupported settings format/version (upgrade kiln?)")
	allowed_top = {"format", "version", "repositories", "signing_key"}
	unknown_top = sorted(set(data.keys()) - allowed_top)
	if unknown_top:
		raise ValueError(f"settings file has unknown top-level fields: {', '.join(unknown_top)}")
	repos = data.get("repositories", {})
	if not isinstance(repos, dict):
		raise ValueError("settings 'repositories' must be an object")
	unknown_repo = sorted(set(repos.keys()) - {"local", "release_to"})
	if unknown_repo:
		raise ValueError(f"settings 'repositories' has unknown fields: {', '.join(unknown_repo)}")
	base = path.parent
	return SettingsV0(
		local_repo=_opt_path(base, repos.get("local"), what="repositories.local"),
		release_to=_opt_path(base, repos.get("release_to"), what="repositories.release_to"),
		signing_key=_opt_path(base, data.get("signing_key"), what="signing_key"),
	)
