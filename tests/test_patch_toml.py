import pytest

from kindkit.patch_kube import PatchError
from kindkit.patch_toml import encode_toml, patch_toml


def _lines(*pairs):
    return "".join("  " * depth + text + "\n" for depth, text in pairs)


BASE = "\n".join(
    [
        'disabled_modules = ["reload"]',
        "[modules.os]",
        "  verbose = true",
        "[modules.core.engine.handlers.sandbox]",
        '  handler_type = "io.example.sandbox.v1"',
    ]
)

_ENGINE = [
    (1, "[modules.core]"),
    (2, "[modules.core.engine]"),
    (3, "[modules.core.engine.handlers]"),
    (4, "[modules.core.engine.handlers.sandbox]"),
    (5, 'handler_type = "io.example.sandbox.v1"'),
]
_OS = [(1, "[modules.os]"), (2, "verbose = true")]
_STORE = [
    (2, "[modules.core.store]"),
    (3, "[modules.core.store.mirrors]"),
    (4, '[modules.core.store.mirrors."cache:5000"]'),
    (5, 'endpoint = ["http://cache:5000"]'),
]

TABLES = _lines((0, "[modules]"), *_ENGINE, *_OS)
TOP = 'disabled_modules = ["reload"]\n\n'
WITH_STORE = TOP + _lines((0, "[modules]"), *_ENGINE, *_STORE, *_OS)

REMOVE = '[{"op": "remove", "path": "/disabled_modules"}]'
STORE_PATCH = (
    "[modules.core.store.mirrors]\n"
    '  [modules.core.store.mirrors."cache:5000"]\n'
    '    endpoint = ["http://cache:5000"]'
)


@pytest.mark.parametrize(
    "to_patch,patches,patches6902",
    [
        ("🗿", None, None),
        (BASE, ["🏰"], None),
        (BASE, None, ["🏰"]),
        (BASE, None, ['[{"op": "remove", "path": "/missing"}]']),
    ],
)
def test_errors(to_patch, patches, patches6902):
    with pytest.raises(PatchError):
        patch_toml(to_patch, patches, patches6902)


@pytest.mark.parametrize(
    "patches,patches6902,expected",
    [
        (None, None, TOP + TABLES),
        (["disabled_modules=[]"], None, TABLES),
        (None, [REMOVE], TABLES),
        (['disabled_modules=["other"]'], [REMOVE], TABLES),
        ([STORE_PATCH], None, WITH_STORE),
    ],
)
def test_patches(patches, patches6902, expected):
    assert patch_toml(BASE, patches, patches6902) == expected


def test_encode_empty():
    assert encode_toml({}) == ""
    with pytest.raises(PatchError):
        encode_toml([1])