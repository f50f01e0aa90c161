# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Directory-backed repositories.

The local repository is where `install` copies packages and where poms live.
The release repository (`release_to`) is the destination of `upload`. Both use
the Maven layout: `<group as dirs>/<id>/<version>/<file name>`.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import threading
from pathlib import Path

from kiln.core.artifact import ArtifactSpec, file_name, validate_spec
from kiln.errors import UploadFailure
from kiln.sign import load_signing_seed, write_signature

logger = logging.getLogger(__name__)


def repository_path(root: Path, spec: ArtifactSpec) -> Path:
	validate_spec(spec)
	out = root.joinpath(*spec.group.split("."), spec.id)
	if spec.version:
		out = out / spec.version
	return out / file_name(spec)


def atomic_copy(src: Path, dst: Path) -> None:
	dst.parent.mkdir(parents=True, exist_ok=True)
	tmp = dst.with_name(dst.name + f".tmp.{os.getpid()}.{threading.get_ident()}")
	try:
		shutil.copyfile(src, tmp)
		os.replace(tmp, dst)
	finally:
		if tmp.exists():
			tmp.unlink()


def _write_checksums(path: Path) -> list[Path]:
	data = path.read_bytes()
	out: list[Path] = []
	for algo in ("sha1", "md5"):
		sidecar = Path(f"{path}.{algo}")
		sidecar.write_text(hashlib.new(algo, data).hexdigest(), encoding="ascii")
		out.append(sidecar)
	return out


class Repositories:
	def __init__(self, local: Path, *, release_to: Path | None = None, signing_key: Path | None = None) -> None:
		self.local = Path(os.path.abspath(local))
		self.release_to = Path(os.path.abspath(release_to)) if release_to is not None else None
		self.signing_key = signing_key
		self._guard = threading.Lock()
		self._path_locks: dict[Path, threading.Lock] = {}

	def locate(self, spec: ArtifactSpec) -> Path:
		return repository_path(self.local, spec)

	def install_lock(self, path: Path) -> threading.Lock:
		"""One lock per destination path: installs to the same file are serialized."""
		with self._guard:
			lock = self._path_locks.get(path)
			if lock is None:
				lock = threading.Lock()
				self._path_locks[path] = lock
			return lock

	def install(self, src: Path, dst: Path) -> None:
		with self.install_lock(dst):
			atomic_copy(src, dst)
		logger.info("Installed %s", dst)

	def upload(self, spec: ArtifactSpec, path: Path) -> Path:
		"""
		Copy `path` into the release repository with checksum sidecars (and a
		signature sidecar when a signing key is configured).

		Nothing is rolled back on failure; files already uploaded stay.
		"""
		if self.release_to is None:
			raise UploadFailure(
				"no release repository configured (set repositories.release_to or --release-to)",
				artifact_path=str(path),
				spec=spec.to_string(),
			)
		dest = repository_path(self.release_to, spec)
		logger.info("Uploading %s to %s", path, dest)
		try:
			atomic_copy(path, dest)
			_write_checksums(dest)
			if self.signing_key is not None:
				write_signature(dest, seed=load_signing_seed(self.signing_key))
		except (OSError, ValueError) as err:
			raise UploadFailure(f"upload failed: {err}", artifact_path=str(path), spec=spec.to_string()) from err
		return dest
