from __future__ import annotations

from pathlib import Path

import pytest

from layerconf.errors import ReferenceFormatError
from layerconf.io.refs import Reference, format_ref, path_to_ref


def test_relative_path_resolves_against_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    ref = path_to_ref("conf/app.yaml", env={})
    assert ref == Reference("file", str((tmp_path / "conf" / "app.yaml").resolve()))
    assert ref.is_file


def test_relative_path_resolves_against_including_document(tmp_path):
    base = Reference("file", str(tmp_path / "conf" / "main.yaml"))
    ref = path_to_ref("parts/db.yaml", base, env={})
    assert format_ref(ref) == str((tmp_path / "conf" / "parts" / "db.yaml").resolve())


def test_absolute_path_ignores_base(tmp_path):
    base = Reference("file", str(tmp_path / "a" / "main.yaml"))
    target = tmp_path / "b" / "x.yaml"
    assert path_to_ref(str(target), base, env={}).location == str(target.resolve())


def test_equal_paths_give_equal_references(tmp_path):
    a = path_to_ref(str(tmp_path / "x" / ".." / "y.yaml"), env={})
    b = path_to_ref(str(tmp_path / "y.yaml"), env={})
    assert a == b


def test_env_segment_substitution(tmp_path):
    ref = path_to_ref("$CONF_DIR/app.yaml", env={"CONF_DIR": str(tmp_path)})
    assert ref.location == str((tmp_path / "app.yaml").resolve())


def test_unset_env_segment_left_verbatim(tmp_path):
    base = Reference("file", str(tmp_path / "main.yaml"))
    ref = path_to_ref("$NOPE/app.yaml", base, env={})
    assert ref.location == str((tmp_path / "$NOPE" / "app.yaml").resolve())


def test_file_uri(tmp_path):
    target = tmp_path / "with space.yaml"
    ref = path_to_ref(target.as_uri(), env={})
    assert ref == Reference("file", str(target.resolve()))


def test_http_urls_and_relative_includes():
    base = path_to_ref("https://conf.example.org/app/main.yaml", env={})
    assert base == Reference("https", "https://conf.example.org/app/main.yaml")
    child = path_to_ref("parts/db.yaml", base, env={})
    assert child == Reference("https", "https://conf.example.org/app/parts/db.yaml")


@pytest.mark.parametrize("raw", ["", "   ", "ftp://host/x.yaml", "http:///nohost.yaml", 42, None])
def test_bad_references_raise(raw):
    with pytest.raises(ReferenceFormatError):
        path_to_ref(raw, env={})


def test_accepts_bytes_and_pathlike(tmp_path):
    p = tmp_path / "x.yaml"
    assert path_to_ref(str(p).encode("utf-8"), env={}) == path_to_ref(Path(p), env={})
