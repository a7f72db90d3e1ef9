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

import os

from typing import Tuple

from flatarc.Kernel import Singleton, getLogger
from flatarc.Formats import SUPPORTED_FORMATS, FormatDescriptor
from flatarc.FileSystems import FileSystem, LocalFileSystem

# Extract chunk size (64 KiB) - used when copying entries out of an archive
EXTRACT_CHUNK_SIZE = int(os.getenv('FLATARC_CHUNK_SIZE', 64 * 1024))

# Comma separated extensions to leave out of detection, e.g. "GRP"
DISABLE_FORMATS = os.getenv('FLATARC_DISABLE_FORMATS', '')

SUPPORT_URL = 'https://github.com/flatarc/flatarc/issues'

logger = getLogger(__name__)


def parseFormatList(text) -> Tuple[str, ...]:
    return tuple(part.strip().lstrip('.').upper() for part in (text or '').split(',') if part.strip())


# Singleton
class SettingsGetter(Singleton):

    @classmethod
    def getInstance(cls):
        if cls not in cls._instances:
            raise RuntimeError('Get SettingsGetter before initialized it.')
        return cls._instances[cls]

    def initialize(self, platform=None, fileSystem: FileSystem = None, disabledFormats=DISABLE_FORMATS):
        """Initialize the SettingsGetter with the platform, file system and enabled formats."""
        self._platform = platform
        self._fileSystem = fileSystem
        self._disabledFormats = parseFormatList(disabledFormats)

        if self._disabledFormats:
            logger.debug(f"Disabled formats: {', '.join(self._disabledFormats)}")

    def isWindows(self):
        return self._platform == "Windows"

    def isLinux(self):
        return self._platform == "Linux"

    def isDarwin(self):
        return self._platform == "Darwin"

    @property
    def disabledFormats(self) -> Tuple[str, ...]:
        return self._disabledFormats

    def getFormats(self) -> Tuple[FormatDescriptor, ...]:
        """Formats that take part in detection, in probing order"""
        return tuple(
            descriptor for descriptor in SUPPORTED_FORMATS if descriptor.extension not in self._disabledFormats
        )

    def getFileSystem(self) -> FileSystem:
        """File system archives are opened through (created on first use)"""
        if self._fileSystem is None:
            self._fileSystem = LocalFileSystem()
        return self._fileSystem

    def getSupportURL(self):
        return SUPPORT_URL
