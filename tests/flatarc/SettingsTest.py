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

import unittest

from flatarc.Settings import EXTRACT_CHUNK_SIZE, SettingsGetter, parseFormatList
from flatarc.Formats import MVL_FORMAT, GRP_FORMAT
from flatarc.FileSystems import LocalFileSystem, MemoryFileSystem


class SettingsGetterTest(unittest.TestCase):

    def setUp(self):
        self.settingsGetter = SettingsGetter.getInstance()
        self.saved = (self.settingsGetter._fileSystem, self.settingsGetter._disabledFormats)

    def tearDown(self):
        self.settingsGetter._fileSystem, self.settingsGetter._disabledFormats = self.saved

    def testInitializedByTestPackage(self):
        self.assertIs(SettingsGetter.getInstance(), SettingsGetter())

    def testDefaultFileSystem(self):
        self.settingsGetter._fileSystem = None
        self.assertIsInstance(self.settingsGetter.getFileSystem(), LocalFileSystem)
        self.assertIs(self.settingsGetter.getFileSystem(), self.settingsGetter.getFileSystem())

    def testCustomFileSystem(self):
        fileSystem = MemoryFileSystem()
        self.settingsGetter._fileSystem = fileSystem
        self.assertIs(self.settingsGetter.getFileSystem(), fileSystem)

    def testDisabledFormats(self):
        self.settingsGetter._disabledFormats = ()
        self.assertEqual(self.settingsGetter.getFormats(), (MVL_FORMAT, GRP_FORMAT))

        self.settingsGetter._disabledFormats = parseFormatList('grp')
        self.assertEqual(self.settingsGetter.getFormats(), (MVL_FORMAT,))

    def testParseFormatList(self):
        self.assertEqual(parseFormatList(' grp, .Mvl ,,'), ('GRP', 'MVL'))
        self.assertEqual(parseFormatList(''), ())
        self.assertEqual(parseFormatList(None), ())

    def testChunkSize(self):
        self.assertGreater(EXTRACT_CHUNK_SIZE, 0)


if __name__ == '__main__':
    unittest.main()
