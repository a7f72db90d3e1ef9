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

from typing import Iterator, List, Optional, Sequence, Tuple

from flatarc.Kernel import ArchiveEvent, getLogger
from flatarc.Errors import (
    ArchiveError, ArchiveIOError, ArchiveNotADirectoryError, EntryNotFoundError, NotSupportedError,
    UnsupportedFormatError
)
from flatarc.Formats import SUPPORTED_FORMATS, FormatDescriptor, findFormat
from flatarc.FileSystems import FileSystem, LocalFileSystem
from flatarc.Directory import Entry, LookupIndex, loadDirectory, probeSignature
from flatarc.Reader import EntryReader

logger = getLogger(__name__)

ROOT_DIRECTORIES = ('', '/')


def _candidateFormats(path: str, formats: Sequence[FormatDescriptor]) -> List[FormatDescriptor]:
    # The format named by the extension is probed first, the rest keep their order
    preferred = findFormat(path, formats) if '.' in path else None
    if preferred is None:
        return list(formats)
    return [preferred] + [descriptor for descriptor in formats if descriptor is not preferred]


def detectFormat(path: str, fileSystem: FileSystem, formats: Sequence[FormatDescriptor] = SUPPORTED_FORMATS):
    """
    Find the format whose signature `path` starts with.

    Raises:
        UnsupportedFormatError: If no format matches
    """
    for descriptor in _candidateFormats(path, formats):
        if probeSignature(fileSystem, path, descriptor):
            logger.debug(f"Detected {descriptor.extension} archive: {path}")
            return descriptor

    raise UnsupportedFormatError(f"{path} is not a supported archive", path=path)


def isArchive(
    path: str,
    descriptor: Optional[FormatDescriptor] = None,
    fileSystem: Optional[FileSystem] = None,
    forWriting: bool = False,
    formats: Sequence[FormatDescriptor] = SUPPORTED_FORMATS,
) -> bool:
    """
    Signature-only probe; nothing is kept.

    Raises:
        NotSupportedError: If forWriting is requested
    """
    if forWriting:
        raise NotSupportedError("Archives are read-only", path=path)

    fileSystem = fileSystem or LocalFileSystem()

    if descriptor is not None:
        return probeSignature(fileSystem, path, descriptor)

    try:
        detectFormat(path, fileSystem, formats)
    except UnsupportedFormatError:
        return False
    return True


class Archive:
    """
    A loaded archive: its path, its modification time and the sorted
    directory. Nothing changes between open() and close().

    Usage:
        with Archive.open('movies.mvl') as archive:
            with archive.openRead('intro.mve') as reader:
                data = reader.read()
    """

    def __init__(
        self, path: str, descriptor: FormatDescriptor, index: LookupIndex, fileSystem: FileSystem,
        lastModifiedTime: Optional[float] = None, archiveSize: Optional[int] = None
    ):
        self._path = path
        self._descriptor = descriptor
        self._index = index
        self._known = frozenset(index)
        self._fileSystem = fileSystem
        self._lastModifiedTime = lastModifiedTime
        self._archiveSize = archiveSize
        self._payloadEnd = descriptor.directoryEnd(len(index)) + sum(entry.size for entry in index)
        self._closed = False

    @classmethod
    def open(
        cls,
        path: str,
        descriptor: Optional[FormatDescriptor] = None,
        fileSystem: Optional[FileSystem] = None,
        forWriting: bool = False,
        formats: Sequence[FormatDescriptor] = SUPPORTED_FORMATS,
    ) -> "Archive":
        """
        Open and load an archive.

        Args:
            path: Archive path, as understood by fileSystem
            descriptor: Format to load as; detected from the signature when None
            fileSystem: Byte-stream collaborator (default: LocalFileSystem)
            forWriting: Always rejected, the formats are read-only
            formats: Candidates for detection

        Returns:
            Archive: Fully loaded archive

        Raises:
            NotSupportedError: If forWriting is requested
            UnsupportedFormatError: If the signature does not match
            ArchiveIOError: If the file cannot be read or is truncated
            ArchiveMemoryError: If the directory cannot be allocated
        """
        if forWriting:
            raise NotSupportedError("Archives are read-only", path=path)

        fileSystem = fileSystem or LocalFileSystem()

        try:
            stat = fileSystem.stat(path)
        except OSError as e:
            raise ArchiveIOError(f"Cannot access {path}: {e}", path=path) from e

        if descriptor is None:
            descriptor = detectFormat(path, fileSystem, formats)

        try:
            with fileSystem.open(path) as stream:
                entries = loadDirectory(stream, descriptor, streamSize=stat.size)
        except ArchiveError as e:
            if e.path is None:
                e.path = path
            raise
        except OSError as e:
            raise ArchiveIOError(f"Cannot read {path}: {e}", path=path) from e

        index = LookupIndex.build(entries, descriptor)
        archive = cls(
            path, descriptor, index, fileSystem, lastModifiedTime=stat.mtime, archiveSize=stat.size
        )

        if archive.payloadEnd > stat.size:
            logger.warning(
                f"{path}: entries declare {archive.payloadEnd} bytes but the file has only {stat.size}, "
                "the last entries are truncated"
            )
        elif archive.payloadEnd < stat.size:
            logger.debug(f"{path}: {stat.size - archive.payloadEnd} trailing bytes after the payload")

        logger.debug(f"Opened {descriptor.extension} archive {path} with {len(index)} entries")
        ArchiveEvent.archiveOpen.trigger(archive=archive)
        return archive

    def __enter__(self):
        return self

    def __exit__(self, excType, excValue, traceback):
        self.close()
        return False

    def __repr__(self):
        return f"<Archive {self._descriptor.extension} {self._path!r} entries={len(self._index)}>"

    def __len__(self) -> int:
        return self.entryCount

    def __iter__(self) -> Iterator[str]:
        return iter(self.enumerate())

    def __contains__(self, name) -> bool:
        return self.exists(name)

    def _checkOpen(self):
        if self._closed:
            raise ValueError(f"Archive {self._path} is closed.")

    @property
    def path(self) -> str:
        return self._path

    @property
    def descriptor(self) -> FormatDescriptor:
        return self._descriptor

    @property
    def fileSystem(self) -> FileSystem:
        return self._fileSystem

    @property
    def lastModifiedTime(self) -> Optional[float]:
        return self._lastModifiedTime

    @property
    def archiveSize(self) -> Optional[int]:
        return self._archiveSize

    @property
    def payloadEnd(self) -> int:
        return self._payloadEnd

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def entryCount(self) -> int:
        self._checkOpen()
        return len(self._index)

    @property
    def entries(self) -> Tuple[Entry, ...]:
        self._checkOpen()
        return self._index.entries

    def enumerate(self, dirname: str = '') -> List[str]:
        """
        List the entry names, in lookup (sorted) order.

        Only the root can be listed since neither format has directories.

        Raises:
            ArchiveNotADirectoryError: If dirname is not the root
        """
        self._checkOpen()
        if dirname not in ROOT_DIRECTORIES:
            raise ArchiveNotADirectoryError(f"Not a directory: {dirname}", path=self._path, name=dirname)
        return self._index.names()

    def getEntry(self, name: str) -> Entry:
        self._checkOpen()
        try:
            return self._index.lookup(name)
        except EntryNotFoundError as e:
            e.path = self._path
            logger.debug(f"{name} not found in {self._path}")
            raise

    def exists(self, name: str) -> bool:
        self._checkOpen()
        return self._index.find(name) is not None

    def isDirectory(self, name: str) -> Tuple[bool, bool]:
        """Returns (isDirectory, fileExists); there are no directories."""
        return False, self.exists(name)

    def isSymLink(self, name: str) -> Tuple[bool, bool]:
        """Returns (isSymLink, fileExists); there are no links."""
        return False, self.exists(name)

    def getLastModifiedTime(self, name: str) -> Optional[float]:
        """
        Entries carry no timestamp of their own; each one reports the
        archive's time as captured at open.

        Raises:
            EntryNotFoundError: If the name is not in the archive
        """
        self.getEntry(name)
        return self._lastModifiedTime

    def openRead(self, name: str) -> EntryReader:
        """
        Open an entry for reading.

        Raises:
            EntryNotFoundError: If the name is not in the archive
            ArchiveIOError: If the archive file cannot be reopened
        """
        return self.openEntry(self.getEntry(name))

    def openEntry(self, entry: Entry) -> EntryReader:
        """
        Open an entry already taken from this archive's directory, such as
        one of the entries listed by `entries` (duplicates included).

        Raises:
            EntryNotFoundError: If the entry does not belong to this archive
            ArchiveIOError: If the archive file cannot be reopened
        """
        self._checkOpen()
        if entry not in self._known:
            raise EntryNotFoundError(f"No such file: {entry.name}", path=self._path, name=entry.name)

        reader = EntryReader(self, entry)
        ArchiveEvent.entryOpen.trigger(archive=self, reader=reader)
        return reader

    def openWrite(self, name: str):
        raise NotSupportedError("Archives are read-only", path=self._path, name=name)

    def openAppend(self, name: str):
        raise NotSupportedError("Archives are read-only", path=self._path, name=name)

    def remove(self, name: str):
        raise NotSupportedError("Archives are read-only", path=self._path, name=name)

    def mkdir(self, name: str):
        raise NotSupportedError("Archives are read-only", path=self._path, name=name)

    def close(self):
        """Drop the directory. Readers already opened keep working."""
        if self._closed:
            return

        self._closed = True
        self._index = LookupIndex((), self._descriptor)
        self._known = frozenset()
        logger.debug(f"Closed archive {self._path}")
        ArchiveEvent.archiveClose.trigger(archive=self)
