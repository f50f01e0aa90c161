# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Detached Ed25519 signatures for uploaded artifacts.

Key files hold base64 of a raw 32-byte Ed25519 private seed (whitespace
allowed). Signature sidecars are canonical JSON written next to the artifact
as `<file>.sig`.
"""

from __future__ import annotations

import base64
import hashlib
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

SIG_FORMAT = "kiln-sig"


def _b64(data: bytes) -> str:
	return base64.b64encode(data).decode("ascii")


def _public_raw(priv: Ed25519PrivateKey) -> bytes:
	return priv.public_key().public_bytes(
		encoding=serialization.Encoding.Raw,
		format=serialization.PublicFormat.Raw,
	)


def key_id(pubkey_raw: bytes) -> str:
	"""kid = "ed25519:" + base64(sha256(pubkey_raw))"""
	return "ed25519:" + _b64(hashlib.sha256(pubkey_raw).digest())


def load_signing_seed(path: Path) -> bytes:
	text = path.read_text(encoding="utf-8").strip()
	try:
		raw = base64.b64decode(text.encode("ascii"), validate=True)
	except ValueError as err:
		raise ValueError(f"invalid base64 in signing key file: {path}") from err
	if len(raw) != 32:
		raise ValueError("ed25519 private key seed must decode to 32 bytes")
	return raw


@dataclass(frozen=True)
class GeneratedKey:
	seed_path: Path
	pubkey_b64: str
	kid: str


def generate_signing_key(out_path: Path) -> GeneratedKey:
	seed = os.urandom(32)
	out_path.parent.mkdir(parents=True, exist_ok=True)
	out_path.write_text(_b64(seed) + "\n", encoding="utf-8")
	pub = _public_raw(Ed25519PrivateKey.from_private_bytes(seed))
	return GeneratedKey(seed_path=out_path, pubkey_b64=_b64(pub), kid=key_id(pub))


def signature_sidecar(data: bytes, *, seed: bytes) -> dict[str, Any]:
	priv = Ed25519PrivateKey.from_private_bytes(seed)
	pub = _public_raw(priv)
	return {
		"format": SIG_FORMAT,
		"version": 0,
		"sha256": "sha256:" + hashlib.sha256(data).hexdigest(),
		"algo": "ed25519",
		"kid": key_id(pub),
		"pubkey": _b64(pub),
		"sig": _b64(priv.sign(data)),
	}


def write_signature(path: Path, *, seed: bytes) -> Path:
	"""Sign the bytes of `path` and write `<path>.sig`; returns the sidecar path."""
	obj = signature_sidecar(path.read_bytes(), seed=seed)
	out = Path(str(path) + ".sig")
	out.write_text(json.dumps(obj, sort_keys=True, separators=(",", ":")) + "\n", encoding="utf-8")
	return out


def verify_signature(path: Path, *, sidecar: Path | None = None) -> bool:
	"""Check a sidecar against the file bytes and the public key it carries."""
	sidecar = sidecar if sidecar is not None else Path(str(path) + ".sig")
	obj = json.loads(sidecar.read_text(encoding="utf-8"))
	if not isinstance(obj, dict) or obj.get("format") != SIG_FORMAT or obj.get("version") != 0:
		raise ValueError("unsupported signature sidecar format/version")
	data = path.read_bytes()
	if obj.get("sha256") != "sha256:" + hashlib.sha256(data).hexdigest():
		return False
	pub = Ed25519PublicKey.from_public_bytes(base64.b64decode(obj["pubkey"], validate=True))
	try:
		pub.verify(base64.b64decode(obj["sig"], validate=True), data)
	except InvalidSignature:
		return False
	return True
