"""Unpacking node log archives onto the host."""

from __future__ import annotations

import io
import logging
import os
import tarfile
from typing import BinaryIO

logger = logging.getLogger(__name__)

_BLOCK = 512
_CHUNK = 64 * 1024


class _Replay(io.RawIOBase):
    """A readable stream that yields head first, then the rest of a stream."""

    def __init__(self, head: bytes, rest: BinaryIO) -> None:
        super().__init__()
        self._head = head
        self._rest = rest

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self._head:
            n = min(len(buffer), len(self._head))
            buffer[:n] = self._head[:n]
            self._head = self._head[n:]
            return n
        data = self._rest.read(len(buffer))
        n = len(data)
        buffer[:n] = data
        return n


def _write_member(archive: tarfile.TarFile, member: tarfile.TarInfo, target: str) -> None:
    source = archive.extractfile(member)
    written = 0
    try:
        fd = os.open(target, os.O_CREAT | os.O_RDWR, member.mode & 0o7777)
        with os.fdopen(fd, "wb") as handle:
            if source is not None:
                while chunk := source.read(_CHUNK):
                    handle.write(chunk)
                    written += len(chunk)
    except (OSError, tarfile.TarError) as exc:
        raise OSError(f"error writing to {target}: {exc}") from exc
    if written != member.size:
        raise OSError(f"only wrote {written} bytes to {target}; expected {member.size}")


def untar(stream: BinaryIO, directory: str | os.PathLike[str]) -> None:
    """Read a tar archive from stream and write its contents under directory.

    Regular files and directories are written; other entry types are
    skipped with a warning. Parent directories of files are not created.
    Any bytes left after the archive are read and discarded.
    """
    root = os.fspath(directory)
    head = stream.read(_BLOCK)
    if head:
        with tarfile.open(fileobj=_Replay(head, stream), mode="r|") as archive:
            for member in archive:
                target = os.path.normpath(os.path.join(root, *member.name.split("/")))
                if member.isreg():
                    _write_member(archive, member, target)
                elif member.isdir():
                    if not os.path.exists(target):
                        os.makedirs(target, mode=0o755, exist_ok=True)
                else:
                    logger.warning(
                        "tar file entry %s contained unsupported file type %r",
                        member.name,
                        member.type,
                    )
    # drain any trailing padding so the writer is not left hanging
    while stream.read(_CHUNK):
        pass