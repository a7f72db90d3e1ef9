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

import io
import weakref

from typing import Optional

from flatarc.Kernel import getLogger
from flatarc.Errors import ArchiveIOError, InvalidArgumentError, NotSupportedError, PastEOFError
from flatarc.Directory import Entry

logger = getLogger(__name__)


class EntryReader(io.RawIOBase):
    """
    File-like object for one archive entry.

    Owns its own stream on the archive file, so any number of readers
    (even on the same entry) can be used at once without sharing a
    position. Reads are clamped to the entry: nothing outside
    [startOffset, startOffset + size) is ever returned.
    """

    def __init__(self, archive, entry: Entry):
        """
        Open the entry.

        Args:
            archive: Archive the entry belongs to (only a weak reference is kept)
            entry: Entry to read

        Raises:
            ArchiveIOError: If the archive cannot be opened or positioned
        """
        super().__init__()
        self._stream = None
        self._entry = entry
        self._cursor = 0
        self._archiveRef = weakref.ref(archive)
        self._path = archive.path

        try:
            stream = archive.fileSystem.open(self._path)
        except OSError as e:
            raise ArchiveIOError(f"Cannot open {self._path}: {e}", path=self._path, name=entry.name) from e

        try:
            stream.seek(entry.startOffset)
        except (OSError, ValueError) as e:
            stream.close()
            raise ArchiveIOError(
                f"Cannot seek to {entry.name} at {entry.startOffset}: {e}", path=self._path, name=entry.name
            ) from e

        self._stream = stream
        logger.debug(f"Opened {entry.name} ({entry.size} bytes at {entry.startOffset}) in {self._path}")

    def __repr__(self):
        state = 'closed' if self.closed else f'{self._cursor}/{self._entry.size}'
        return f"<EntryReader {self._entry.name!r} {state}>"

    @property
    def entry(self) -> Entry:
        return self._entry

    @property
    def name(self) -> str:
        return self._entry.name

    @property
    def archive(self):
        """The archive this reader was opened from, or None if it is gone."""
        return self._archiveRef()

    def _checkOpen(self):
        if self.closed:
            raise ValueError("I/O operation on closed entry reader.")

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def tell(self) -> int:
        self._checkOpen()
        return self._cursor

    def eof(self) -> bool:
        self._checkOpen()
        return self._cursor >= self._entry.size

    def fileLength(self) -> int:
        return self._entry.size

    def _bytesLeft(self) -> int:
        return self._entry.size - self._cursor

    def readinto(self, b) -> int:
        self._checkOpen()

        view = memoryview(b).cast('B')
        want = min(len(view), self._bytesLeft())
        if want <= 0:
            return 0

        try:
            n = self._stream.readinto(view[:want])
        except OSError as e:
            raise ArchiveIOError(f"Read failed in {self._entry.name}: {e}", path=self._path, name=self.name) from e

        n = n or 0
        self._cursor += n
        return n

    def readObjects(self, objectSize: int, objectCount: int) -> bytes:
        """
        Read up to `objectCount` whole units of `objectSize` bytes.

        The count is clamped so the read never crosses the end of the entry.
        A trailing partial unit is never returned.

        Returns:
            bytes: The units read; len(result) // objectSize is the number of
                   units, which is 0 at the end of the entry
        """
        self._checkOpen()

        if objectSize <= 0:
            raise InvalidArgumentError(f"Object size must be positive, got {objectSize}", name=self.name)
        if objectCount < 0:
            raise InvalidArgumentError(f"Object count cannot be negative, got {objectCount}", name=self.name)

        objectCount = min(objectCount, self._bytesLeft() // objectSize)
        if objectCount == 0:
            return b''

        try:
            data = self._stream.read(objectCount * objectSize)
        except OSError as e:
            raise ArchiveIOError(f"Read failed in {self._entry.name}: {e}", path=self._path, name=self.name) from e

        wholeLength = (len(data) // objectSize) * objectSize
        if wholeLength != len(data):
            # Short read ended inside a unit, step back to its start
            try:
                self._stream.seek(self._entry.startOffset + self._cursor + wholeLength)
            except (OSError, ValueError) as e:
                raise ArchiveIOError(
                    f"Cannot reposition {self._entry.name}: {e}", path=self._path, name=self.name
                ) from e
            data = data[:wholeLength]

        self._cursor += wholeLength
        return data

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """
        Move to `offset` within the entry.

        Only positions strictly inside the entry are valid targets, so
        seeking to the entry size itself fails. The position changes only
        if the underlying stream could be repositioned.

        Raises:
            InvalidArgumentError: If the target is negative
            PastEOFError: If the target is at or past the end of the entry
            ArchiveIOError: If the underlying stream cannot seek
        """
        self._checkOpen()

        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._cursor + offset
        elif whence == io.SEEK_END:
            target = self._entry.size + offset
        else:
            raise InvalidArgumentError(f"Invalid whence: {whence}", name=self.name)

        if target < 0:
            raise InvalidArgumentError(f"Cannot seek to negative offset {target}", name=self.name)
        if target >= self._entry.size:
            raise PastEOFError(f"Offset {target} is past the end of {self.name} ({self._entry.size} bytes)",
                               name=self.name)

        try:
            self._stream.seek(self._entry.startOffset + target)
        except (OSError, ValueError) as e:
            raise ArchiveIOError(f"Seek failed in {self._entry.name}: {e}", path=self._path, name=self.name) from e

        self._cursor = target
        return self._cursor

    def write(self, b) -> Optional[int]:
        raise NotSupportedError("Archive entries are read-only", path=self._path, name=self.name)

    def append(self, b) -> Optional[int]:
        raise NotSupportedError("Archive entries are read-only", path=self._path, name=self.name)

    def truncate(self, size=None) -> int:
        raise NotSupportedError("Archive entries are read-only", path=self._path, name=self.name)

    def close(self) -> None:
        """
        Close the underlying stream.

        Raises:
            ArchiveIOError: If the stream fails to close; the reader stays open
        """
        if self.closed:
            return

        if self._stream is not None:
            try:
                self._stream.close()
            except OSError as e:
                raise ArchiveIOError(f"Failed to close {self._path}: {e}", path=self._path, name=self.name) from e

            self._stream = None
            logger.debug(f"Closed {self._entry.name} in {self._path}")

        super().close()
