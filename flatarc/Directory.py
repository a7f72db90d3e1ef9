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

import struct

from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Optional, Tuple

from flatarc.Kernel import getLogger
from flatarc.Errors import ArchiveIOError, ArchiveMemoryError, EntryNotFoundError, UnsupportedFormatError
from flatarc.Formats import FormatDescriptor, isSearchableName

logger = getLogger(__name__)

COUNT_STRUCT = struct.Struct('<I')


@dataclass(frozen=True)
class Entry:
    """One decoded directory record"""
    name: str
    size: int
    startOffset: int # absolute offset of the first payload byte
    index: int # position in the on-disk directory

    @property
    def endOffset(self) -> int:
        return self.startOffset + self.size


def _readExactly(stream: BinaryIO, length: int, what: str) -> bytes:
    try:
        data = stream.read(length)
    except OSError as e:
        raise ArchiveIOError(f"Failed to read {what}: {e}") from e

    if data is None or len(data) != length:
        got = 0 if data is None else len(data)
        raise ArchiveIOError(f"Short read on {what}: expected {length} bytes, got {got}")
    return data


def _allocateTable(count: int) -> list:
    return [None] * count


def readHeader(stream: BinaryIO, descriptor: FormatDescriptor) -> int:
    """
    Check the signature and read the entry count.

    Args:
        stream: Binary stream positioned at the start of the archive
        descriptor: Format to check against

    Returns:
        int: Number of directory records

    Raises:
        UnsupportedFormatError: If the magic does not match
        ArchiveIOError: On a short read
    """
    magic = _readExactly(stream, descriptor.magicLength, 'signature')
    if magic != descriptor.magic:
        raise UnsupportedFormatError(f"Not a {descriptor.extension} archive (signature {magic!r})")

    count, = COUNT_STRUCT.unpack(_readExactly(stream, COUNT_STRUCT.size, 'entry count'))
    return count


def loadDirectory(stream: BinaryIO, descriptor: FormatDescriptor, streamSize: Optional[int] = None) -> List[Entry]:
    """
    Read and decode the whole directory, in file order.

    Offsets are assigned in the same pass that reads the sizes: the first
    entry starts right after the directory table and each following entry
    starts where the previous one ends.

    Args:
        stream: Binary stream positioned at the start of the archive
        descriptor: Format of the archive
        streamSize: Total stream size if known; lets an impossible entry
                    count fail before anything is allocated

    Returns:
        list[Entry]: Entries in on-disk order (unsorted)

    Raises:
        UnsupportedFormatError: If the magic does not match
        ArchiveIOError: On any short read
        ArchiveMemoryError: If the entry table cannot be allocated
    """
    count = readHeader(stream, descriptor)
    directoryEnd = descriptor.directoryEnd(count)

    if streamSize is not None and directoryEnd > streamSize:
        raise ArchiveIOError(
            f"Directory of {count} entries needs {directoryEnd} bytes but the archive has only {streamSize}"
        )

    try:
        entries = _allocateTable(count)
    except MemoryError as e:
        raise ArchiveMemoryError(f"Cannot allocate {count} directory entries") from e

    recordStruct = struct.Struct(f'<{descriptor.nameFieldWidth}sI')
    location = directoryEnd

    for index in range(count):
        record = _readExactly(stream, recordStruct.size, f'directory record {index}')
        rawName, size = recordStruct.unpack(record)

        entries[index] = Entry(name=descriptor.decodeName(rawName), size=size, startOffset=location, index=index)
        location += size

    logger.debug(f"Loaded {count} {descriptor.extension} entries, payload ends at {location}")
    return entries


class LookupIndex:
    """
    Entries sorted by name with the format's comparator, searched by
    binary search.

    Names that compare equal keep their on-disk order, and lookups return
    the leftmost match, so the first of several same-named entries wins.
    """

    def __init__(self, entries: List[Entry], descriptor: FormatDescriptor):
        """
        Args:
            entries: Entries already sorted by build()
            descriptor: Format whose comparator produced the order
        """
        self._entries = tuple(entries)
        self._keys = tuple(descriptor.nameKey(entry.name) for entry in self._entries)
        self.descriptor = descriptor

    @classmethod
    def build(cls, entries: List[Entry], descriptor: FormatDescriptor) -> "LookupIndex":
        ordered = sorted(entries, key=lambda entry: (descriptor.nameKey(entry.name), entry.index))
        return cls(ordered, descriptor)

    @property
    def entries(self) -> Tuple[Entry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def names(self) -> List[str]:
        return [entry.name for entry in self._entries]

    def find(self, name: str) -> Optional[Entry]:
        """
        Find an entry by name (binary search).

        Returns:
            Entry or None if the name is not in the archive
        """
        if not isinstance(name, str) or not isSearchableName(name):
            return None

        key = self.descriptor.nameKey(name)
        found = None
        left, right = 0, len(self._keys) - 1

        while left <= right:
            mid = (left + right) // 2
            midKey = self._keys[mid]

            if key < midKey:
                right = mid - 1
            elif key > midKey:
                left = mid + 1
            else:
                # Keep going left: an earlier duplicate wins
                found = self._entries[mid]
                right = mid - 1

        return found

    def lookup(self, name: str) -> Entry:
        """
        Find an entry by name.

        Raises:
            EntryNotFoundError: If the name is not in the archive
        """
        entry = self.find(name)
        if entry is None:
            raise EntryNotFoundError(f"No such file: {name}", name=name)
        return entry


def probeSignature(fileSystem, path: str, descriptor: FormatDescriptor) -> bool:
    """
    Cheap check: does `path` start with the format's header?

    Only the magic and the entry count are read; the stream is always closed.
    """
    try:
        stream = fileSystem.open(path)
    except OSError as e:
        logger.debug(f"Cannot open {path} for probing: {e}")
        return False

    with stream:
        try:
            readHeader(stream, descriptor)
        except (UnsupportedFormatError, ArchiveIOError) as e:
            logger.debug(f"{path} is not a {descriptor.extension} archive: {e}")
            return False

    return True


def validateArchive(fileSystem, path: str, descriptor: FormatDescriptor) -> bool:
    """
    Full check: the header matches and every directory record can be decoded.
    The decoded directory is discarded.
    """
    try:
        streamSize = fileSystem.getSize(path)
        with fileSystem.open(path) as stream:
            loadDirectory(stream, descriptor, streamSize=streamSize)
    except (UnsupportedFormatError, ArchiveIOError, ArchiveMemoryError) as e:
        logger.debug(f"{path} failed {descriptor.extension} validation: {e}")
        return False
    except OSError as e:
        logger.debug(f"Cannot open {path} for validation: {e}")
        return False

    return True
