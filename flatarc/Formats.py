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
Format descriptors for the supported flat archives.

Both formats share one layout, all integers little-endian uint32:

    magic | count | count * {name[nameFieldWidth], size} | payload...

The payload holds every file's bytes back to back, in directory order.
They only differ in the magic, the width and padding of the name field,
and whether names compare case-sensitively.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple

# uint32 count after the magic, uint32 size after each name field
COUNT_SIZE = 4
SIZE_FIELD_SIZE = 4

# 8.3 names: at most 12 characters, at most 3 after the dot
MAX_NAME_LENGTH = 12
MAX_EXTENSION_LENGTH = 3

NAME_ENCODING = 'latin-1' # byte-for-byte, so str order is byte order

_ASCII_LOWER = str.maketrans('ABCDEFGHIJKLMNOPQRSTUVWXYZ', 'abcdefghijklmnopqrstuvwxyz')


class NameRule(Enum):
    """How a fixed-width name field is padded on disk"""
    NUL_TERMINATED = auto()
    SPACE_PADDED = auto()


class Comparator(Enum):
    """How names are ordered and matched"""
    ORDINAL = auto()
    CASE_INSENSITIVE = auto() # ASCII letters only, like stricmp()


@dataclass(frozen=True)
class FormatDescriptor:
    """Static description of one archive variant"""
    extension: str
    description: str
    author: str
    url: str
    magic: bytes
    nameFieldWidth: int
    nameRule: NameRule
    comparator: Comparator

    @property
    def magicLength(self) -> int:
        return len(self.magic)

    @property
    def headerSize(self) -> int:
        return self.magicLength + COUNT_SIZE

    @property
    def recordSize(self) -> int:
        return self.nameFieldWidth + SIZE_FIELD_SIZE

    @property
    def caseSensitive(self) -> bool:
        return self.comparator == Comparator.ORDINAL

    def directoryEnd(self, count: int) -> int:
        """Offset of the first payload byte for an archive of `count` entries."""
        return self.headerSize + self.recordSize * count

    def decodeName(self, raw: bytes) -> str:
        """
        Decode a raw name field into an entry name.

        Args:
            raw: Exactly nameFieldWidth bytes read from the directory

        Returns:
            str: The name, without padding
        """
        raw = bytes(raw[:self.nameFieldWidth])
        raw = raw.split(b'\x00', 1)[0]

        if self.nameRule == NameRule.SPACE_PADDED:
            raw = raw.rstrip(b' ')

        return raw.decode(NAME_ENCODING)

    def nameKey(self, name: str) -> str:
        """Key used both to sort the directory and to search it."""
        if self.comparator == Comparator.CASE_INSENSITIVE:
            return name.translate(_ASCII_LOWER)
        return name

    def compareNames(self, a: str, b: str) -> int:
        keyA = self.nameKey(a)
        keyB = self.nameKey(b)
        return (keyA > keyB) - (keyA < keyB)


def isSearchableName(name: str) -> bool:
    """
    Cheap filter run before any search. Both formats only store DOS 8.3
    names, so anything longer, with a long extension or with a path
    separator can never be found.
    """
    if '/' in name or '\\' in name:
        return False

    if len(name) > MAX_NAME_LENGTH:
        return False

    dot = name.rfind('.')
    if dot != -1 and len(name) - dot - 1 > MAX_EXTENSION_LENGTH:
        return False

    return True


# Descent II movie library
MVL_FORMAT = FormatDescriptor(
    extension='MVL',
    description='Descent II Movielib format',
    author='Bradley Bell <btb@icculus.org>',
    url='http://www.descent2.com/ddn/specs/mvl/',
    magic=b'DMVL',
    nameFieldWidth=13,
    nameRule=NameRule.NUL_TERMINATED,
    comparator=Comparator.CASE_INSENSITIVE,
)

# BUILD engine group file
GRP_FORMAT = FormatDescriptor(
    extension='GRP',
    description='Build engine Groupfile format',
    author='Ryan C. Gordon <icculus@icculus.org>',
    url='http://www.advsys.net/ken/build.htm',
    magic=b'KenSilverman',
    nameFieldWidth=12,
    nameRule=NameRule.SPACE_PADDED,
    comparator=Comparator.ORDINAL,
)

SUPPORTED_FORMATS: Tuple[FormatDescriptor, ...] = (MVL_FORMAT, GRP_FORMAT)


def findFormat(extension: str, formats=SUPPORTED_FORMATS) -> Optional[FormatDescriptor]:
    """
    Find a format by file extension ("grp", ".GRP" or "maps.grp" all work).

    Returns:
        FormatDescriptor or None if no format uses that extension
    """
    if not extension:
        return None

    extension = extension.rsplit('.', 1)[-1].upper()
    for descriptor in formats:
        if descriptor.extension == extension:
            return descriptor
    return None
