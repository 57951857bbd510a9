"""Tests for dirs.py — path checks, temp dirs, renames, and copies."""

import os

from shell_toolkit import dirs


def test_path_predicates(tmp_path):
    f = tmp_path / "f"
    f.write_text("x")
    link = tmp_path / "dangling"
    link.symlink_to(tmp_path / "nowhere")

    assert dirs.file_exists(f)
    assert dirs.is_file(f) and dirs.is_regular_file(f)
    assert not dirs.is_directory(f)
    assert dirs.is_directory(tmp_path)
    assert not dirs.is_file(tmp_path)
    assert not dirs.file_exists(link)
    assert not dirs.is_file(tmp_path / "missing")


def test_remove_item(tmp_path):
    d = tmp_path / "d"
    (d / "inner").mkdir(parents=True)
    f = tmp_path / "f"
    f.write_text("x")
    dirs.remove_item(d)
    dirs.remove_item(f)
    assert not d.exists()
    assert not f.exists()


def test_executable_path():
    assert os.path.basename(dirs.executable_path("sh")) == "sh"
    assert dirs.executable_path("/some/explicit/path") == "/some/explicit/path"
    assert dirs.executable_path("definitely-not-a-command-xyz") is None
    assert dirs.is_executable_in_path("sh")


def test_in_temporary_directory_restores_cwd():
    before = os.getcwd()
    with dirs.in_temporary_directory() as (original, temp):
        assert original == before
        assert os.path.realpath(os.getcwd()) == os.path.realpath(temp)
        assert os.path.isdir(temp)
    assert os.getcwd() == before
    assert not os.path.exists(temp)


def test_in_temporary_directory_without_chdir():
    before = os.getcwd()
    with dirs.in_temporary_directory(change_working_directory=False) as (_, temp):
        assert os.getcwd() == before
    assert not os.path.exists(temp)


def test_rename_items_containing(tmp_path):
    (tmp_path / "FromDir").mkdir()
    (tmp_path / "FromDir" / "FileFromName.txt").write_text("x")
    (tmp_path / "untouched.txt").write_text("y")
    dirs.rename_items_containing("From", "To", tmp_path)
    assert (tmp_path / "ToDir" / "FileToName.txt").exists()
    assert (tmp_path / "untouched.txt").exists()


def test_duplicate_files_skips_git(tmp_path):
    src = tmp_path / "src"
    dst = tmp_path / "dst"
    (src / ".git").mkdir(parents=True)
    (src / ".git" / "HEAD").write_text("ref")
    (src / "pkg").mkdir()
    (src / "pkg" / "mod.py").write_text("code")
    dst.mkdir()
    dirs.duplicate_files(src, dst)
    assert (dst / "pkg" / "mod.py").read_text() == "code"
    assert not (dst / ".git").exists()


def test_replace_in_file(tmp_path):
    f = tmp_path / "t.txt"
    f.write_text("hello NAME, bye NAME")
    dirs.replace_in_file("NAME", "World", f)
    assert f.read_text() == "hello World, bye World"
