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
import os
import unittest
from unittest.mock import patch

from tests.ArchiveTestBase import ArchiveTestBase, EXAMPLE_FILES, buildGRP, buildMVL

import Core


class CoreCLITest(ArchiveTestBase):
    """Runs the command line end to end through Core.runCLIMain"""

    def setUp(self):
        super().setUp()
        self.mvlPath = self.writeArchive('example.mvl', buildMVL(EXAMPLE_FILES))

        stdoutPatcher = patch('sys.stdout', new_callable=io.StringIO)
        self.stdout = stdoutPatcher.start()
        self.addCleanup(stdoutPatcher.stop)

    def testNoArgumentsShowsHelp(self):
        self.assertEqual(Core.runCLIMain([]), 0)
        self.assertIn('usage: flatarc', self.stdout.getvalue())

    def testVersion(self):
        self.assertEqual(Core.runCLIMain(['--version']), 0)

        text = self.stdout.getvalue()
        self.assertIn('FlatArc v', text)
        self.assertIn('MVL', text)
        self.assertIn('GRP', text)

    def testList(self):
        self.assertEqual(Core.runCLIMain(['list', self.mvlPath]), 0)
        self.assertIn('b.txt', self.stdout.getvalue())

    def testCat(self):
        output = io.BytesIO()
        self.assertEqual(Core.runCLIMain(['cat', self.mvlPath, 'B.TXT'], output=output), 0)
        self.assertEqual(output.getvalue(), b'abc')

    def testGlobalFormatBeforeCommand(self):
        grpAsDat = self.writeArchive('data.dat', buildGRP([('GAME.CON', b'x')]))

        # --format given before the command must survive the subcommand parse
        self.assertEqual(Core.runCLIMain(['--format', 'mvl', 'list', grpAsDat]), 1)
        self.assertEqual(Core.runCLIMain(['--format', 'grp', 'list', grpAsDat]), 0)
        self.assertEqual(Core.runCLIMain(['list', grpAsDat]), 0)

    def testExtract(self):
        outDir = os.path.join(self.tempDir, 'extracted')
        self.assertEqual(Core.runCLIMain(['extract', self.mvlPath, '-o', outDir]), 0)

        for name, data in EXAMPLE_FILES:
            with open(os.path.join(outDir, name), 'rb') as f:
                self.assertEqual(f.read(), data)

    def testFailureExitCode(self):
        self.assertEqual(Core.runCLIMain(['info', os.path.join(self.tempDir, 'nope.mvl')]), 1)


if __name__ == '__main__':
    unittest.main()
