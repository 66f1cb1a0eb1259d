"""Tests for name helpers."""

from pathlib import Path

import pytest
from wire_modules.utils import is_valid_permission_name
from wire_modules.utils import module_name_from_file
from wire_modules.utils import sanitize_name


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("page-edit", "page-edit"),
        ("Hello View", "hello-view"),
        ("  Hello   World!  ", "hello-world"),
        ("hello__world.v2", "hello__world.v2"),
        ("--edit--", "edit"),
        ("!!!", ""),
    ],
)
def test_sanitize_name(raw, expected):
    assert sanitize_name(raw) == expected


def test_is_valid_permission_name():
    assert is_valid_permission_name("page-edit")
    assert is_valid_permission_name("v2")
    assert not is_valid_permission_name("")
    assert not is_valid_permission_name("123")


def test_module_name_from_file():
    assert module_name_from_file(Path("site/modules/Hello/Hello.module.py")) == "Hello"
    assert module_name_from_file(Path("site/modules/helpers.py")) is None
    assert module_name_from_file(Path("site/modules/my-module.module.py")) is None
    assert module_name_from_file(Path("Hello.mod.py"), suffix=".mod.py") == "Hello"
