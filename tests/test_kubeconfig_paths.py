import os

import pytest

from kindkit.kubeconfig_paths import (
    discard_empty_and_duplicates,
    file_exists,
    home_dir,
    lock_file,
    lock_name,
    locked,
    path_for_merge,
    paths,
    unlock_file,
)


def env_from(mapping):
    return lambda name: mapping.get(name, "")


DUPLICATED = os.pathsep.join(["/foo", "/bar", "", "/foo", "/bar"])


def test_paths_explicit():
    result = paths("foo", env_from({"KUBECONFIG": DUPLICATED, "HOME": "/home"}))
    assert result == ["foo"]


def test_paths_kubeconfig_list():
    result = paths("", env_from({"KUBECONFIG": DUPLICATED, "HOME": "/home"}))
    assert result == ["/foo", "/bar"]


def test_paths_home_default():
    result = paths("", env_from({"HOME": "/home"}))
    assert result == ["/home/.kube/config"]


@pytest.fixture
def fake_kubeconfigs(tmp_path):
    (tmp_path / "fake-home").mkdir()
    created = []
    for name in ("foo", "bar", "baz"):
        p = tmp_path / name
        p.touch()
        created.append(str(p))
    return created


def test_path_for_merge_explicit():
    result = path_for_merge("foo", env_from({"KUBECONFIG": DUPLICATED, "HOME": "/home"}))
    assert result == "foo"


def test_path_for_merge_kubeconfig_list(fake_kubeconfigs):
    result = path_for_merge("", env_from({"KUBECONFIG": os.pathsep.join(fake_kubeconfigs)}))
    assert result == fake_kubeconfigs[0]


def test_path_for_merge_prefers_first_existing(tmp_path, fake_kubeconfigs):
    missing = str(tmp_path / "missing")
    value = os.pathsep.join([missing, fake_kubeconfigs[1]])
    assert path_for_merge("", env_from({"KUBECONFIG": value})) == fake_kubeconfigs[1]


def test_path_for_merge_last_if_none_exist():
    value = os.pathsep.join(["/bogus/path", "/bogus/path/two"])
    assert path_for_merge("", env_from({"KUBECONFIG": value})) == "/bogus/path/two"


def test_home_dir_windows_with_kube_config(tmp_path):
    fake_home = tmp_path / "fake-home"
    config = fake_home / ".kube" / "config"
    config.parent.mkdir(parents=True)
    config.touch()
    result = home_dir(
        "windows",
        env_from(
            {
                "HOME": str(fake_home),
                "HOMEDRIVE": "ZZ:",
                "HOMEPATH": r"ZZ:\Users\fake-user-zzz",
            }
        ),
    )
    assert result == str(fake_home)


def test_home_dir_windows_without_kube_config(tmp_path):
    fake_home = str(tmp_path)
    result = home_dir(
        "windows",
        env_from({"HOME": fake_home, "HOMEDRIVE": "", "HOMEPATH": "Users/fake-user-zzz"}),
    )
    assert result == fake_home


def test_home_dir_windows_none_exist():
    result = home_dir(
        "windows",
        env_from({"HOME": "Z:/faaaaake", "HOMEDRIVE": "Z:/", "HOMEPATH": "Users/fake-user-zzz"}),
    )
    assert result == "Z:/faaaaake"


def test_home_dir_windows_no_path():
    assert home_dir("windows", lambda name: "") == ""


def test_home_dir_non_windows_uses_home():
    assert home_dir("linux", env_from({"HOME": "/home/someone"})) == "/home/someone"


def test_discard_empty_and_duplicates():
    assert discard_empty_and_duplicates(["/a", "", "/b", "/a", "", "/c", "/b"]) == ["/a", "/b", "/c"]


def test_file_exists(tmp_path):
    f = tmp_path / "file"
    f.touch()
    assert file_exists(str(f)) is True
    assert file_exists(str(tmp_path)) is False
    assert file_exists(str(tmp_path / "absent")) is False


def test_lock_name():
    assert lock_name("/some/config") == "/some/config.lock"


def test_lock_and_unlock_creates_directory(tmp_path):
    target = str(tmp_path / "nested" / "dir" / "config")
    lock_file(target)
    assert os.path.exists(target + ".lock")
    with pytest.raises(FileExistsError):
        lock_file(target)
    unlock_file(target)
    assert not os.path.exists(target + ".lock")


def test_locked_context_manager(tmp_path):
    target = str(tmp_path / "config")
    with locked(target) as held:
        assert held == target
        assert os.path.exists(lock_name(target))
    assert not os.path.exists(lock_name(target))


def test_locked_releases_on_error(tmp_path):
    target = str(tmp_path / "config")
    seen = []
    with pytest.raises(RuntimeError, match="boom"):
        with locked(target) as held:
            seen.append(held)
            raise RuntimeError("boom")
    assert seen == [target]
    assert not os.path.exists(lock_name(target))
    with locked(target) as again:
        assert again == target