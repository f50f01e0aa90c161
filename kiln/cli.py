# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from kiln.buildfile import DEFAULT_BUILDFILE, load_buildfile
from kiln.config import BuildOptions, SettingsV0, default_local_repo, load_settings_v0
from kiln.core.session import BuildSession
from kiln.errors import KilnError
from kiln.ide.classify import classify_classpath, expand_classpath
from kiln.ide.idea import define_idea_tasks
from kiln.sign import generate_signing_key

DEFAULT_SETTINGS = "kiln-settings.json"


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="kiln", description="kiln build tool (packaging, install, upload)")
	sub = p.add_subparsers(dest="cmd", required=True)

	run = sub.add_parser("run", help="Invoke tasks defined by the buildfile (default: build)")
	_add_build_args(run)
	run.add_argument("tasks", nargs="*", default=["build"], help="Tasks to invoke, e.g. package install upload")
	run.add_argument("--test", action="store_true", help="Run the integration task after packaging a root invocation")

	classify = sub.add_parser("classify", help="Classify a project's classpath (workspace/repository/generated/local)")
	_add_build_args(classify)
	classify.add_argument("project", type=str, help="Project name, e.g. app:core")

	keygen = sub.add_parser("keygen", help="Generate an Ed25519 signing key seed file (base64)")
	keygen.add_argument("--out", type=Path, required=True, help="Output path for key seed file")
	keygen.add_argument("--print-kid", action="store_true", help="Print kid to stdout")
	return p


def _add_build_args(p: argparse.ArgumentParser) -> None:
	p.add_argument("--buildfile", type=Path, default=Path(DEFAULT_BUILDFILE), help=f"Buildfile path (default: ./{DEFAULT_BUILDFILE})")
	p.add_argument(
		"--settings",
		type=Path,
		default=Path(DEFAULT_SETTINGS),
		help=f"Settings file; ignored when the default is missing (default: ./{DEFAULT_SETTINGS})",
	)
	p.add_argument("--local-repo", type=Path, default=None, help="Local repository (default: $KILN_REPO or ~/.m2/repository)")
	p.add_argument("--release-to", type=Path, default=None, help="Release repository directory for upload")
	p.add_argument("--signing-key", type=Path, default=None, help="Ed25519 key seed file used to sign uploads")
	p.add_argument("--trace", action="store_true", help="Verbose logging")
	p.add_argument("--json", action="store_true", help="Emit machine-readable JSON")


def _options(args: argparse.Namespace) -> BuildOptions:
	settings = SettingsV0()
	if args.settings.exists():
		settings = load_settings_v0(args.settings)
	elif args.settings != Path(DEFAULT_SETTINGS):
		raise ValueError(f"settings file not found: {args.settings}")
	buildfile = Path(os.path.abspath(args.buildfile))
	return BuildOptions(
		invocation_dir=Path.cwd(),
		local_repo=args.local_repo or settings.local_repo or default_local_repo(),
		release_to=args.release_to or settings.release_to,
		signing_key=args.signing_key or settings.signing_key,
		test=bool(getattr(args, "test", False)),
		trace=bool(args.trace),
		build_files=(buildfile,),
	)


def _session(args: argparse.Namespace) -> BuildSession:
	options = _options(args)
	session = BuildSession(options)
	load_buildfile(options.build_files[0], session)
	define_idea_tasks(session)
	return session


def _report_error(err: Exception, *, as_json: bool) -> int:
	if not isinstance(err, KilnError):
		err = KilnError(reason_code="INTERNAL_ERROR", message=str(err))
	if as_json:
		print(json.dumps({"ok": False, "error": err.to_dict()}, sort_keys=True, separators=(",", ":")))
	else:
		print(err.format_human(), file=sys.stderr)
	return 2


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)

	if args.cmd == "keygen":
		try:
			key = generate_signing_key(args.out)
		except OSError as err:
			p.error(str(err))
			return 2
		if args.print_kid:
			print(key.kid)
		return 0

	logging.basicConfig(level=logging.DEBUG if args.trace else logging.INFO, format="%(message)s", stream=sys.stderr)

	if args.cmd == "run":
		try:
			session = _session(args)
			session.invoke(*args.tasks)
		except (KilnError, ValueError) as err:
			return _report_error(err, as_json=args.json)
		if args.json:
			print(json.dumps({"ok": True, "tasks": list(args.tasks)}, sort_keys=True, separators=(",", ":")))
		return 0

	if args.cmd == "classify":
		try:
			session = _session(args)
			project = session.project(args.project)
			parts = classify_classpath(
				expand_classpath(project),
				projects=session.projects(),
				repo_root=session.repositories.local,
				output_dir=project.base_dir,
			)
		except (KilnError, ValueError) as err:
			return _report_error(err, as_json=args.json)
		print(json.dumps(parts.to_dict(), sort_keys=True, indent=None if args.json else 2))
		return 0

	raise AssertionError("unreachable")
