import pytest

from assetvault.errors import AlreadyExists
from assetvault.storage.paths import (
    allocate_asset_path,
    allocate_folder_path,
    folder_exists,
    make_directory,
    read_file,
    remove_directories,
    remove_file,
    validate_folder_path,
    write_file,
)
from tests.tools import asset_dir


def test_allocate_folder_path():
    assert allocate_folder_path(None, "root") == "root"
    assert allocate_folder_path("root", "child") == "root/child"
    assert allocate_folder_path("root/child", "grandchild") == "root/child/grandchild"
    asset_dir("root").mkdir()
    with pytest.raises(AlreadyExists):
        allocate_folder_path(None, "root")
    # allocation does not touch the disk
    assert not asset_dir("root/child").exists()


@pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b", "nul\x00"])
def test_invalid_folder_names(name):
    with pytest.raises(ValueError):
        allocate_folder_path(None, name)


@pytest.mark.parametrize("path", ["", "/abs", "root/../etc", "root//child"])
def test_invalid_folder_paths(path):
    with pytest.raises(ValueError):
        validate_folder_path(path)


def test_allocate_asset_path():
    asset_dir("root").mkdir()
    id, path = allocate_asset_path("root", "jpg", id_factory=lambda: "abc")
    assert (id, path) == ("abc", "root/abc.jpg")
    with pytest.raises(ValueError):
        allocate_asset_path("root", "tar.gz")


def test_allocate_asset_path_retries_once():
    asset_dir("root").mkdir()
    asset_dir("root/taken.png").write_bytes(b"x")
    ids = iter(["taken", "free"])
    assert allocate_asset_path("root", "png", id_factory=lambda: next(ids)) == ("free", "root/free.png")

    # two collisions in a row give up
    with pytest.raises(AlreadyExists):
        allocate_asset_path("root", "png", id_factory=lambda: "taken")


def test_make_and_remove_directory():
    created = make_directory("a/b/c")
    assert created == [asset_dir("a"), asset_dir("a/b"), asset_dir("a/b/c")]
    assert folder_exists("a/b/c")
    with pytest.raises(AlreadyExists):
        make_directory("a/b/c")
    remove_directories(created)
    assert not asset_dir("a").exists()
    # removing again is fine
    remove_directories(created)


def test_make_directory_only_reports_new_parents():
    asset_dir("a").mkdir()
    assert make_directory("a/b") == [asset_dir("a/b")]


def test_write_file_is_exclusive():
    asset_dir("root").mkdir()
    write_file("root/x.txt", b"first")
    with pytest.raises(AlreadyExists):
        write_file("root/x.txt", b"second")
    assert read_file("root/x.txt") == b"first"
    remove_file("root/x.txt")
    assert not asset_dir("root/x.txt").exists()
    remove_file("root/x.txt")
