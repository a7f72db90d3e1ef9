#!/usr/bin/env python
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0
#
# FlatArc - Read-only access to flat indexed game archives
# Copyright (C) 2025-2026 FlatArc contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
FileSystem abstraction for archive access

Archives never read the disk directly. Every byte stream is obtained from a
FileSystem, so the same reader works for:
- LocalFileSystem: Local filesystem (wraps os.* calls)
- MemoryFileSystem: Archives held in memory (bytes buffers keyed by path)
"""

import io
import os
import threading
import stat as _stat

from dataclasses import dataclass
from typing import BinaryIO, Dict, Optional, Protocol

from flatarc.Kernel import getLogger

logger = getLogger(__name__)


@dataclass
class Stat:
    """File/directory metadata"""
    size: int
    mtime: Optional[float]
    isDir: bool


class FileSystem(Protocol):
    """FileSystem protocol that all implementations must follow"""

    def open(self, path: str) -> BinaryIO:
        ... # Independent, seekable, binary stream positioned at 0

    def stat(self, path: str) -> Stat:
        ...

    def exists(self, path: str) -> bool:
        ...

    def getSize(self, path: str) -> int:
        ...

    def getLastModifiedTime(self, path: str) -> Optional[float]:
        ...


class LocalFileSystem:
    """
    Local filesystem backend.

    Wraps os.* calls to provide FileSystem interface for archive files on disk.
    """

    def open(self, path: str) -> BinaryIO:
        """
        Open file for reading.

        Args:
            path: Path to the archive file

        Returns:
            Binary file object
        """
        return open(path, "rb")

    def stat(self, path: str) -> Stat:
        """
        Get file/directory metadata.

        Args:
            path: Path to file or directory

        Returns:
            Stat object with size, mtime, isDir
        """
        st = os.stat(path)
        isDir = _stat.S_ISDIR(st.st_mode)
        return Stat(size=int(st.st_size), mtime=float(st.st_mtime), isDir=isDir)

    def exists(self, path: str) -> bool:
        """Check if path exists"""
        return os.path.exists(path)

    def getSize(self, path: str) -> int:
        """Get file size"""
        return os.path.getsize(path)

    def getLastModifiedTime(self, path: str) -> Optional[float]:
        """Get modification time as a POSIX timestamp"""
        return self.stat(path).mtime


class MemoryFileSystem:
    """
    In-memory backend.

    Every open() returns a fresh BytesIO over the same immutable bytes, so
    readers never share a position.
    """

    def __init__(self, files: Optional[Dict[str, bytes]] = None, mtime: Optional[float] = None):
        """
        Initialize MemoryFileSystem.

        Args:
            files: Mapping of path -> archive bytes
            mtime: Modification time reported for every file (default: None)
        """
        self._files = {}
        self._mtimes = {}
        self._defaultMtime = mtime
        self._lock = threading.Lock()

        for path, data in (files or {}).items():
            self.add(path, data)

    def add(self, path: str, data: bytes, mtime: Optional[float] = None) -> None:
        """Add or replace a file"""
        with self._lock:
            self._files[path] = bytes(data)
            self._mtimes[path] = mtime if mtime is not None else self._defaultMtime

        logger.debug(f"MemoryFileSystem: added {path} ({len(data)} bytes)")

    def _get(self, path: str) -> bytes:
        with self._lock:
            data = self._files.get(path)
        if data is None:
            raise FileNotFoundError(path)
        return data

    def open(self, path: str) -> BinaryIO:
        return io.BytesIO(self._get(path))

    def stat(self, path: str) -> Stat:
        data = self._get(path)
        with self._lock:
            mtime = self._mtimes.get(path)
        return Stat(size=len(data), mtime=mtime, isDir=False)

    def exists(self, path: str) -> bool:
        with self._lock:
            return path in self._files

    def getSize(self, path: str) -> int:
        return len(self._get(path))

    def getLastModifiedTime(self, path: str) -> Optional[float]:
        return self.stat(path).mtime
