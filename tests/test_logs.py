import io
import logging
import os
import stat
import tarfile

import pytest

from kindkit.logs import untar


def _archive(entries):
    """Build a tar archive from (name, kind, payload, mode) tuples."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as archive:
        for name, kind, payload, mode in entries:
            info = tarfile.TarInfo(name)
            info.mode = mode
            if kind == "dir":
                info.type = tarfile.DIRTYPE
                archive.addfile(info)
            elif kind == "file":
                info.size = len(payload)
                archive.addfile(info, io.BytesIO(payload))
            elif kind == "symlink":
                info.type = tarfile.SYMTYPE
                info.linkname = payload
                archive.addfile(info)
    return buffer.getvalue()


def test_untar_files_and_directories(tmp_path):
    data = _archive(
        [
            ("./", "dir", None, 0o755),
            ("./kubelet", "dir", None, 0o755),
            ("./kubelet/log.txt", "file", b"kubelet started\n", 0o644),
            ("./journal.log", "file", b"journal contents", 0o644),
        ]
    )
    untar(io.BytesIO(data), tmp_path)
    assert (tmp_path / "kubelet").is_dir()
    assert (tmp_path / "kubelet" / "log.txt").read_bytes() == b"kubelet started\n"
    assert (tmp_path / "journal.log").read_bytes() == b"journal contents"


def test_untar_applies_file_mode(tmp_path):
    data = _archive([("secret-free.txt", "file", b"x", 0o600)])
    untar(io.BytesIO(data), tmp_path)
    mode = stat.S_IMODE(os.stat(tmp_path / "secret-free.txt").st_mode)
    assert mode == 0o600


def test_untar_existing_directory_is_kept(tmp_path):
    (tmp_path / "logs").mkdir()
    (tmp_path / "logs" / "old.txt").write_text("old")
    data = _archive([("logs", "dir", None, 0o755), ("logs/new.txt", "file", b"new", 0o644)])
    untar(io.BytesIO(data), tmp_path)
    assert (tmp_path / "logs" / "old.txt").read_text() == "old"
    assert (tmp_path / "logs" / "new.txt").read_bytes() == b"new"


def test_untar_skips_symlinks_with_warning(tmp_path, caplog):
    data = _archive(
        [
            ("real.txt", "file", b"payload", 0o644),
            ("link.txt", "symlink", "real.txt", 0o777),
        ]
    )
    with caplog.at_level(logging.WARNING, logger="kindkit.logs"):
        untar(io.BytesIO(data), tmp_path)
    assert not os.path.lexists(tmp_path / "link.txt")
    assert (tmp_path / "real.txt").read_bytes() == b"payload"
    assert any("link.txt" in record.getMessage() for record in caplog.records)


def test_untar_drains_trailing_bytes(tmp_path):
    data = _archive([("a.txt", "file", b"abc", 0o644)]) + b"\0" * 30000
    stream = io.BytesIO(data)
    untar(stream, tmp_path)
    assert stream.read() == b""
    assert stream.tell() == len(data)
    assert (tmp_path / "a.txt").read_bytes() == b"abc"


def test_untar_empty_stream_writes_nothing(tmp_path):
    untar(io.BytesIO(b""), tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_untar_empty_archive_writes_nothing(tmp_path):
    untar(io.BytesIO(_archive([])), tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_untar_garbage_raises(tmp_path):
    with pytest.raises(tarfile.ReadError):
        untar(io.BytesIO(b"x" * 1024), tmp_path)


def test_untar_truncated_file_raises(tmp_path):
    data = _archive([("big.bin", "file", b"z" * 4000, 0o644)])
    with pytest.raises((OSError, tarfile.TarError)):
        untar(io.BytesIO(data[:1500]), tmp_path)


def test_untar_file_without_parent_directory_fails(tmp_path):
    data = _archive([("missing/inner.txt", "file", b"data", 0o644)])
    with pytest.raises(OSError):
        untar(io.BytesIO(data), tmp_path)
    assert not (tmp_path / "missing").exists()


def test_untar_round_trip_many_files(tmp_path):
    contents = {f"file{i}.log": (f"line {i}\n" * (i + 1)).encode() for i in range(10)}
    data = _archive([(name, "file", body, 0o644) for name, body in contents.items()])
    untar(io.BytesIO(data), tmp_path)
    assert {p.name: p.read_bytes() for p in tmp_path.iterdir()} == contents