"""Tests for directory synthesis over flat manifests."""

import pytest

from revsage.errors import PathNotFound
from revsage.navigator.dirs import dir_exists, file_info, list_dir, normalize_path
from revsage.types.base import MODE_DIRECTORY, MODE_EXECUTABLE, MODE_REGULAR, MODE_SYMLINK, ManifestEntry


def manifest(*entries: ManifestEntry):
    return {e.file_name: e for e in entries}


@pytest.fixture
def tree():
    return manifest(
        ManifestEntry("README", "1" * 40),
        ManifestEntry("docs/index.md", "2" * 40),
        ManifestEntry("docs/api/ref.md", "3" * 40),
        ManifestEntry("docs/api/v2/ref.md", "4" * 40),
        ManifestEntry("docsite/conf.py", "5" * 40),
        ManifestEntry("tools/run", "6" * 40, executable=True),
        ManifestEntry("tools/latest", "7" * 40, symlink=True),
    )


def test_normalize_path():
    assert normalize_path("") == "."
    assert normalize_path("/") == "."
    assert normalize_path("./docs/") == "docs"
    assert normalize_path("docs//api/./v2") == "docs/api/v2"
    assert normalize_path("docs/../README") == "README"
    with pytest.raises(PathNotFound):
        normalize_path("..")
    with pytest.raises(PathNotFound):
        normalize_path("docs/../../etc")


def test_dir_exists_requires_slash_delimited_prefix(tree):
    assert dir_exists(tree, ".")
    assert dir_exists(tree, "docs")
    assert dir_exists(tree, "docs/api/v2")
    assert not dir_exists(tree, "doc")
    assert not dir_exists(tree, "README")
    assert not dir_exists(tree, "docs/index.md")


def test_root_exists_in_empty_manifest():
    assert dir_exists({}, ".")
    assert list_dir({}, ".") == []


def test_list_root(tree):
    entries = {e.name: e.mode for e in list_dir(tree, ".")}

    assert entries == {
        "README": MODE_REGULAR,
        "docs": MODE_DIRECTORY,
        "docsite": MODE_DIRECTORY,
        "tools": MODE_DIRECTORY,
    }


def test_list_subdirectory_dedupes_synthetic_dirs(tree):
    entries = list_dir(tree, "docs")

    assert sorted(e.name for e in entries) == ["api", "index.md"]
    assert [e.name for e in list_dir(tree, "docs/api")].count("v2") == 1


def test_list_dir_flags(tree):
    entries = {e.name: e for e in list_dir(tree, "tools")}

    assert entries["run"].mode == MODE_EXECUTABLE
    assert entries["latest"].mode == MODE_SYMLINK
    assert entries["latest"].is_symlink()


def test_list_missing_or_file_path(tree):
    with pytest.raises(PathNotFound):
        list_dir(tree, "nope")
    with pytest.raises(PathNotFound):
        list_dir(tree, "README")


def test_file_info_uses_base_name():
    info = file_info(ManifestEntry("a/b/c.txt", "8" * 40), size=12)

    assert info.name == "c.txt"
    assert info.size == 12
    assert not info.is_dir()
    assert not info.is_executable()
