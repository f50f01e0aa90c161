# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Archive tasks (zip, tar, tgz).

An archive is composed from an ordered list of inclusion rules. Each rule maps
a source (file or directory) to a destination inside the archive. Merged
archives contribute their entries too. When two rules produce the same entry
name, the first one wins.

Entries use a fixed timestamp and are written in rule order.
"""

from __future__ import annotations

import io
import logging
import os
import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Iterator

from kiln.core.tasks import FileTask, Task

if TYPE_CHECKING:
	from kiln.core.tasks import TaskGraph

logger = logging.getLogger(__name__)

ARCHIVE_KINDS = ("zip", "tar", "tgz")
_FIXED_DATE = (1980, 1, 1, 0, 0, 0)
_FIXED_MTIME = 315532800  # 1980-01-01T00:00:00Z


@dataclass(frozen=True)
class IncludeRule:
	"""
	`source` goes to `dest` inside the archive.

	When `contents` is true and `source` is a directory, its children go
	directly under `dest` instead of a `<dest>/<dirname>` folder.
	"""

	source: Path
	dest: PurePosixPath
	contents: bool = False
	optional: bool = False


def _zipinfo(name: str) -> zipfile.ZipInfo:
	zi = zipfile.ZipInfo(filename=name)
	zi.date_time = _FIXED_DATE
	zi.external_attr = 0o644 << 16
	zi.compress_type = zipfile.ZIP_DEFLATED
	return zi


def _tarinfo(name: str, size: int) -> tarfile.TarInfo:
	ti = tarfile.TarInfo(name=name)
	ti.size = size
	ti.mtime = _FIXED_MTIME
	ti.mode = 0o644
	ti.uid = ti.gid = 0
	ti.uname = ti.gname = ""
	return ti


def _walk_files(root: Path) -> Iterator[Path]:
	for dirpath, dirnames, filenames in os.walk(root):
		dirnames.sort()
		for fn in sorted(filenames):
			yield Path(dirpath) / fn


def read_archive_entries(path: Path) -> Iterator[tuple[str, bytes]]:
	"""Yield (name, bytes) for every regular file in a zip or tar archive."""
	if zipfile.is_zipfile(path):
		with zipfile.ZipFile(path) as zf:
			for info in zf.infolist():
				if not info.is_dir():
					yield info.filename, zf.read(info)
		return
	with tarfile.open(path) as tf:
		for member in tf.getmembers():
			if not member.isfile():
				continue
			handle = tf.extractfile(member)
			if handle is not None:
				yield member.name, handle.read()


class ArchiveTask(FileTask):
	def __init__(self, name: str, graph: TaskGraph, *, kind: str = "zip", project_id: str | None = None) -> None:
		if kind not in ARCHIVE_KINDS:
			raise ValueError(f"unsupported archive kind '{kind}' (expected one of: {', '.join(ARCHIVE_KINDS)})")
		super().__init__(name, graph, project_id=project_id)
		self.kind = kind
		self.rules: list[IncludeRule] = []
		self.merges: list[Path] = []
		self.enhance(action=_write_archive)

	def include(self, *sources: Path | str | Task, path: str = "", as_: str | None = None, optional: bool = False) -> ArchiveTask:
		"""
		Include files or directories under `path` inside the archive.

		`as_` renames a single source; `as_="."` includes the contents of each
		directory source directly under `path`.
		"""
		if as_ is not None and as_ != "." and len(sources) != 1:
			raise ValueError("as_ renames a single source; use as_='.' to include directory contents")
		base = PurePosixPath(path) if path else PurePosixPath()
		for src in sources:
			src_path = self._source_path(src)
			if as_ == ".":
				self.rules.append(IncludeRule(source=src_path, dest=base, contents=True, optional=optional))
			else:
				self.rules.append(IncludeRule(source=src_path, dest=base / (as_ or src_path.name), optional=optional))
		return self

	def merge(self, *archives: Path | str | Task) -> ArchiveTask:
		"""Add every entry of the given archives (entries already present are kept)."""
		for archive in archives:
			self.merges.append(self._source_path(archive))
		return self

	def _source_path(self, src: Path | str | Task) -> Path:
		if isinstance(src, Task):
			self.enhance([src])
			return Path(src.name)
		return Path(os.path.abspath(src))

	def input_files(self) -> list[Path]:
		out: list[Path] = []
		for rule in self.rules:
			if rule.source.is_dir():
				out.extend(_walk_files(rule.source))
			elif rule.source.exists():
				out.append(rule.source)
		out.extend(p for p in self.merges if p.exists())
		return out

	def needed(self) -> bool:
		if super().needed():
			return True
		own = self.timestamp()
		return any(p.stat().st_mtime > own for p in self.input_files())

	def entries(self) -> Iterator[tuple[str, Path | bytes]]:
		"""Archive entries in write order: (entry name, source file or merged bytes)."""
		for rule in self.rules:
			if not rule.source.exists():
				if rule.optional:
					continue
				raise FileNotFoundError(f"archive source does not exist: {rule.source}")
			if rule.source.is_dir():
				for f in _walk_files(rule.source):
					rel = PurePosixPath(*f.relative_to(rule.source).parts)
					yield str(rule.dest / rel), f
			else:
				yield str(rule.dest), rule.source
		for merged in self.merges:
			for name, data in read_archive_entries(merged):
				yield name, data


def _write_archive(task: Task) -> None:
	assert isinstance(task, ArchiveTask)
	out = task.path
	out.parent.mkdir(parents=True, exist_ok=True)
	tmp = out.with_name(out.name + f".tmp.{os.getpid()}")
	seen: set[str] = set()
	logger.info("Packaging %s", out)
	try:
		if task.kind == "zip":
			with zipfile.ZipFile(tmp, mode="w") as zf:
				for name, src in task.entries():
					if name in seen:
						continue
					seen.add(name)
					data = src if isinstance(src, bytes) else src.read_bytes()
					zf.writestr(_zipinfo(name), data)
		else:
			mode = "w:gz" if task.kind == "tgz" else "w"
			with tarfile.open(tmp, mode=mode, format=tarfile.PAX_FORMAT) as tf:
				for name, src in task.entries():
					if name in seen:
						continue
					seen.add(name)
					data = src if isinstance(src, bytes) else src.read_bytes()
					tf.addfile(_tarinfo(name, len(data)), io.BytesIO(data))
		os.replace(tmp, out)
	finally:
		if tmp.exists():
			tmp.unlink()
