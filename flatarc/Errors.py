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


class ArchiveError(Exception):
    """Base exception for everything raised by archive operations"""

    def __init__(self, message, path=None, name=None):
        super().__init__(message)
        self.path = path
        self.name = name


class UnsupportedFormatError(ArchiveError):
    """Raised when the signature does not match the expected format"""
    pass


class ArchiveIOError(ArchiveError, OSError):
    """Raised on a short read or when the underlying stream fails"""
    pass


class ArchiveMemoryError(ArchiveError, MemoryError):
    """Raised when the entry table cannot be allocated"""
    pass


class NotSupportedError(ArchiveError):
    """Raised by every write-path operation; these archives are read-only"""
    pass


class EntryNotFoundError(ArchiveError, FileNotFoundError):
    """Raised when a name is not in the archive (including filtered names)"""
    pass


class ArchiveNotADirectoryError(ArchiveError, NotADirectoryError):
    """Raised when enumerating anything but the archive root"""
    pass


class PastEOFError(ArchiveError):
    """Raised when seeking at or beyond the end of an entry"""
    pass


class InvalidArgumentError(ArchiveError, ValueError):
    """Raised on negative offsets or invalid unit sizes"""
    pass
