"""Tests for content signatures."""

import tempfile
from pathlib import Path

from nlm.core.signature import (
    SIGNATURE_FILE,
    file_signature,
    read_signature_file,
    signature_of_file_set,
    signatures_match,
    write_signature_file,
)


def _make_tree(root: Path, files: dict[str, str]) -> list[str]:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return list(files)


def test_signature_is_deterministic():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        files = _make_tree(root, {"index.js": "a", "lib/util.js": "b", "README.md": "c"})

        first = signature_of_file_set(files, root)
        second = signature_of_file_set(files, root)
        assert first == second
        assert len(first) == 32


def test_signature_ignores_enumeration_order():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        files = _make_tree(root, {"a.js": "1", "b/c.js": "2", "d.json": "3"})

        forward = signature_of_file_set(files, root)
        backward = signature_of_file_set(list(reversed(files)), root)
        assert forward == backward


def test_identical_trees_have_equal_signatures():
    with tempfile.TemporaryDirectory() as one, tempfile.TemporaryDirectory() as two:
        tree = {"index.js": "module.exports = 1", "lib/x.js": "x"}
        files_one = _make_tree(Path(one), tree)
        files_two = _make_tree(Path(two), tree)

        assert signature_of_file_set(files_one, one) == signature_of_file_set(files_two, two)


def test_single_byte_change_changes_signature():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        files = _make_tree(root, {"index.js": "abc", "other.js": "def"})
        before = signature_of_file_set(files, root)

        (root / "index.js").write_text("abd")
        assert signature_of_file_set(files, root) != before


def test_rename_changes_signature():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        before = signature_of_file_set(_make_tree(root, {"index.js": "abc"}), root)

        (root / "index.js").rename(root / "main.js")
        assert signature_of_file_set(["main.js"], root) != before


def test_adding_or_removing_file_changes_signature():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        files = _make_tree(root, {"index.js": "abc"})
        before = signature_of_file_set(files, root)

        _make_tree(root, {"extra.js": ""})
        added = signature_of_file_set(files + ["extra.js"], root)
        assert added != before
        assert signature_of_file_set(files, root) == before


def test_file_signature_normalizes_separators():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "x.js"
        path.write_text("x")
        assert file_signature(path, "lib\\x.js") == file_signature(path, "lib/x.js")


def test_signature_file_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert read_signature_file(tmpdir) == ""

        write_signature_file(tmpdir, "abc123")
        assert (Path(tmpdir) / SIGNATURE_FILE).exists()
        assert read_signature_file(tmpdir) == "abc123"


def test_empty_signatures_never_match():
    assert signatures_match("abc", "abc")
    assert not signatures_match("abc", "abd")
    assert not signatures_match("", "")
