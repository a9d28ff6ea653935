import os

import pytest

from fastjump.paths import absolute_path, final_component, home_dir, normalize_path


def test_trailing_separator_is_stripped() -> None:
    assert normalize_path("/srv/www/", windows=False) == "/srv/www"


def test_empty_path_stays_empty() -> None:
    assert normalize_path("", windows=False) == ""
    assert normalize_path("", windows=True) == ""


def test_posix_case_is_preserved() -> None:
    assert normalize_path("/Users/Me/Src", windows=False) == "/Users/Me/Src"


def test_lowercase_drive_letter_is_uppercased_on_windows() -> None:
    assert normalize_path("c:\\Users\\me\\", windows=True) == "C:\\Users\\me"


def test_windows_components_after_drive_untouched() -> None:
    assert normalize_path("d:\\Src\\proj", windows=True) == "D:\\Src\\proj"
    assert normalize_path("E:\\already", windows=True) == "E:\\already"


def test_windows_forward_slashes_become_separators() -> None:
    assert normalize_path("c:/work/repo", windows=True) == "C:\\work\\repo"


@pytest.mark.skipif(os.sep != "/", reason="POSIX layout")
def test_absolute_path_joins_and_cleans() -> None:
    assert absolute_path("proj/../other/./x", "/work") == "/work/other/x"
    assert absolute_path("/abs/path/", "/work") == "/abs/path"


@pytest.mark.skipif(os.sep != "/", reason="POSIX layout")
def test_final_component() -> None:
    assert final_component("/a/b/home") == "home"
    assert final_component("/") == ""


def test_home_dir_follows_home(isolated_env) -> None:
    assert home_dir() == normalize_path(str(isolated_env / "home"))
