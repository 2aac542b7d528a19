from __future__ import annotations

import json
from pathlib import Path

import pytest
from jsonschema import ValidationError

from sky_install import constants
from sky_install.config import load_config
from sky_install.errors import ChecksumMismatchError, ConfigError
from sky_install.installer.jobs import CLOSURE_LIBRARY, PROTOBUF_JS
from sky_install.signing.checks import sha256, verify_sha256
from sky_install.validator import validate_config


def _write(p: Path, data: dict) -> Path:
    p.write_text(json.dumps(data), encoding="utf-8")
    return p


def test_missing_default_config_yields_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(constants, "SCAII_HOME", tmp_path, raising=True)
    cfg = load_config()
    assert cfg.default_branch == constants.DEFAULT_BRANCH
    assert cfg.timeout == constants.DEFAULT_TIMEOUT
    assert cfg.libraries == {}


def test_missing_explicit_config_is_an_error(tmp_path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.json")


def test_config_overrides_library_url(tmp_path) -> None:
    digest = "a" * 64
    path = _write(
        tmp_path / "sky-install.json",
        {
            "default_branch": "develop",
            "timeout": 5,
            "libraries": {
                "protobuf-js": {"url": "https://mirror.example/pb.zip", "sha256": digest}
            },
        },
    )
    cfg = load_config(path)

    assert cfg.default_branch == "develop"
    assert cfg.timeout == 5
    pb = cfg.apply(PROTOBUF_JS)
    assert pb.url == "https://mirror.example/pb.zip"
    assert pb.sha256 == digest
    assert pb.rename_to == PROTOBUF_JS.rename_to
    # Untouched libraries are returned as-is.
    assert cfg.apply(CLOSURE_LIBRARY) is CLOSURE_LIBRARY


@pytest.mark.parametrize(
    "data",
    [
        {"unknown": 1},
        {"timeout": 0},
        {"libraries": {"left-pad": {"url": "https://x/y.zip"}}},
        {"libraries": {"protobuf-js": {"url": "ftp://x/y.zip"}}},
        {"libraries": {"closure-library": {"sha256": "not-hex"}}},
    ],
)
def test_invalid_config_rejected(tmp_path, data) -> None:
    with pytest.raises(ValidationError):
        validate_config(data)
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path / "bad.json", data))


def test_unparseable_config(tmp_path) -> None:
    p = tmp_path / "broken.json"
    p.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_sha256_verify_roundtrip() -> None:
    data = b"sky-install unit test payload\n"
    digest = sha256(data)
    assert len(digest) == 64 and all(c in "0123456789abcdef" for c in digest)

    verify_sha256(data, expected=digest)
    verify_sha256(bytearray(data), expected=f"sha256:{digest.upper()}")

    with pytest.raises(ChecksumMismatchError):
        verify_sha256(data, expected="0" * 64)
