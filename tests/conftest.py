"""Shared fixtures for the fuzz-session test suite.

FakeFilesystem mirrors LocalFilesystem in memory so workspace and preflight
behaviour can be checked without touching the disk. Symlink targets are
absolute paths and are followed when resolving any path component.
"""

from collections import namedtuple
from pathlib import PurePosixPath

import pytest

from shared.config import Config

DiskUsage = namedtuple("DiskUsage", "total used free")

GIB = 1024 * 1024 * 1024


class FakeFilesystem:
    """In-memory stand-in for shared.filesystem.LocalFilesystem."""

    def __init__(self):
        self.dirs = {PurePosixPath("/")}
        self.files = set()
        self.links = {}
        self.free = {}
        self.default_free = GIB
        self.operations = []

    # -- setup helpers ---------------------------------------------------

    def add_dir(self, path):
        path = PurePosixPath(path)
        for parent in reversed(path.parents):
            self.dirs.add(parent)
        self.dirs.add(path)

    def add_file(self, path):
        path = PurePosixPath(path)
        self.add_dir(path.parent)
        self.files.add(path)

    def set_free(self, path, free):
        self.free[PurePosixPath(path)] = free

    # -- resolution ------------------------------------------------------

    def _resolve(self, path):
        path = PurePosixPath(path)
        if not path.is_absolute():
            return path
        current = PurePosixPath("/")
        for part in path.parts[1:]:
            current = current / part
            seen = 0
            while current in self.links:
                current = self.links[current]
                seen += 1
                if seen > 40:
                    raise OSError(f"symlink loop at {path}")
        return current

    # -- LocalFilesystem interface ---------------------------------------

    def exists(self, path):
        resolved = self._resolve(path)
        return resolved in self.dirs or resolved in self.files

    def lexists(self, path):
        path = PurePosixPath(path)
        parent = self._resolve(path.parent) / path.name
        return parent in self.links or parent in self.dirs or parent in self.files

    def is_dir(self, path):
        return self._resolve(path) in self.dirs

    def is_symlink(self, path):
        path = PurePosixPath(path)
        return self._resolve(path.parent) / path.name in self.links

    def realpath(self, path):
        return self._resolve(path)

    def make_dir(self, path):
        self.operations.append(("make_dir", PurePosixPath(path)))
        self.add_dir(self._resolve(path))

    def replace_with_symlink(self, link, target):
        link = PurePosixPath(link)
        self.operations.append(("symlink", link, PurePosixPath(target)))
        location = self._resolve(link.parent) / link.name
        self.links.pop(location, None)
        self.dirs = {d for d in self.dirs if d != location and location not in d.parents}
        self.files = {f for f in self.files if f != location and location not in f.parents}
        self.links[location] = PurePosixPath(target)

    def iter_files(self, path):
        root = self._resolve(path)
        for f in sorted(self.files):
            if root in f.parents:
                yield f

    def disk_usage(self, path):
        free = self.free.get(PurePosixPath(path), self.default_free)
        return DiskUsage(total=GIB * 4, used=GIB * 4 - free, free=free)


@pytest.fixture
def fake_fs():
    return FakeFilesystem()


@pytest.fixture
def device_config():
    """Config matching the stock device layout with a single 64-bit fuzzer dir."""
    return Config(
        base_dir="/data/fuzz",
        fuzzer_dirs=["/data/nativetest64/fuzzers"],
    )


@pytest.fixture
def probe_ok(monkeypatch):
    """Make the sanitizer probe report success and record its invocations."""
    calls = []

    class Result:
        returncode = 0

    def fake_run(cmd, **kwargs):
        calls.append(list(cmd))
        return Result()

    monkeypatch.setattr("session.preflight.subprocess.run", fake_run)
    return calls
