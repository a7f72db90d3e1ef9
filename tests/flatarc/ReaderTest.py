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
import unittest

from tests.ArchiveTestBase import EXAMPLE_FILES, FlakyStream, buildGRP, buildMVL
from flatarc.Errors import ArchiveIOError, InvalidArgumentError, NotSupportedError, PastEOFError
from flatarc.Formats import MVL_FORMAT
from flatarc.FileSystems import MemoryFileSystem
from flatarc.Archive import Archive
from flatarc.Reader import EntryReader


class FlakyFileSystem(MemoryFileSystem):
    """Hands out FlakyStream objects and remembers them"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.streams = []
        self.failOpen = False
        self.failSeekOnOpen = False

    def open(self, path):
        if self.failOpen:
            raise PermissionError(path)

        stream = FlakyStream(self._get(path))
        stream.failSeek = self.failSeekOnOpen
        self.streams.append(stream)
        return stream


class EntryReaderTest(unittest.TestCase):

    def setUp(self):
        self.files = [('A.TXT', b'hello'), ('b.txt', b'abc'), ('EMPTY.DAT', b''), ('BIG.BIN', bytes(range(256)) * 40)]
        self.data = buildMVL(self.files)
        self.fileSystem = FlakyFileSystem({'test.mvl': self.data})
        self.archive = Archive.open('test.mvl', fileSystem=self.fileSystem)

    def tearDown(self):
        self.archive.close()

    def testReadWholeEntry(self):
        for name, payload in self.files:
            with self.archive.openRead(name) as reader:
                self.assertEqual(reader.read(), payload)
                self.assertTrue(reader.eof())
                self.assertEqual(reader.tell(), len(payload))

    def testReadMatchesArchiveSlice(self):
        for name, _ in self.files:
            entry = self.archive.getEntry(name)
            with self.archive.openRead(name) as reader:
                self.assertEqual(reader.read(entry.size), self.data[entry.startOffset:entry.endOffset])

    def testReadNeverCrossesEntryEnd(self):
        with self.archive.openRead('A.TXT') as reader:
            self.assertEqual(reader.read(1000), b'hello')
            self.assertEqual(reader.read(1000), b'')
            self.assertEqual(reader.read(), b'')
            self.assertTrue(reader.eof())

    def testReadInChunks(self):
        chunks = []
        with self.archive.openRead('BIG.BIN') as reader:
            while True:
                chunk = reader.read(1000)
                if not chunk:
                    break
                chunks.append(chunk)

        self.assertEqual(b''.join(chunks), bytes(range(256)) * 40)
        self.assertEqual([len(c) for c in chunks], [1000] * 10 + [240])

    def testReadinto(self):
        buffer = bytearray(8)
        with self.archive.openRead('b.txt') as reader:
            self.assertEqual(reader.readinto(buffer), 3)
            self.assertEqual(bytes(buffer[:3]), b'abc')
            self.assertEqual(reader.readinto(buffer), 0)

    def testEmptyEntry(self):
        with self.archive.openRead('EMPTY.DAT') as reader:
            self.assertEqual(reader.fileLength(), 0)
            self.assertTrue(reader.eof())
            self.assertEqual(reader.read(10), b'')
            with self.assertRaises(PastEOFError):
                reader.seek(0)

    def testReadObjects(self):
        with self.archive.openRead('A.TXT') as reader:
            # 5 bytes hold two whole 2-byte units
            self.assertEqual(reader.readObjects(2, 10), b'hell')
            self.assertEqual(reader.tell(), 4)
            self.assertEqual(reader.readObjects(2, 1), b'')
            self.assertEqual(reader.tell(), 4)
            self.assertEqual(reader.readObjects(1, 5), b'o')
            self.assertEqual(reader.readObjects(1, 5), b'')
            self.assertTrue(reader.eof())

    def testReadObjectsZeroCount(self):
        with self.archive.openRead('A.TXT') as reader:
            self.assertEqual(reader.readObjects(1, 0), b'')
            self.assertEqual(reader.tell(), 0)

    def testReadObjectsInvalidArguments(self):
        with self.archive.openRead('A.TXT') as reader:
            with self.assertRaises(InvalidArgumentError):
                reader.readObjects(0, 1)
            with self.assertRaises(InvalidArgumentError):
                reader.readObjects(1, -1)
            with self.assertRaises(ValueError):
                reader.readObjects(-4, 1)

    def testSeekBounds(self):
        with self.archive.openRead('A.TXT') as reader:
            with self.assertRaises(PastEOFError):
                reader.seek(5)
            with self.assertRaises(PastEOFError):
                reader.seek(100)
            with self.assertRaises(InvalidArgumentError):
                reader.seek(-1)

            self.assertEqual(reader.tell(), 0)
            self.assertEqual(reader.seek(4), 4)
            self.assertEqual(reader.read(), b'o')

    def testSeekWhence(self):
        with self.archive.openRead('A.TXT') as reader:
            self.assertEqual(reader.seek(-2, io.SEEK_END), 3)
            self.assertEqual(reader.read(1), b'l')
            self.assertEqual(reader.seek(-3, io.SEEK_CUR), 1)
            self.assertEqual(reader.read(2), b'el')

            with self.assertRaises(PastEOFError):
                reader.seek(0, io.SEEK_END)
            with self.assertRaises(InvalidArgumentError):
                reader.seek(0, 7)

    def testSeekFailureKeepsPosition(self):
        with self.archive.openRead('A.TXT') as reader:
            reader.read(2)
            self.fileSystem.streams[-1].failSeek = True

            with self.assertRaises(ArchiveIOError):
                reader.seek(0)
            self.assertEqual(reader.tell(), 2)

            self.fileSystem.streams[-1].failSeek = False
            self.assertEqual(reader.read(), b'llo')

    def testReadFailure(self):
        with self.archive.openRead('A.TXT') as reader:
            self.fileSystem.streams[-1].failRead = True
            with self.assertRaises(ArchiveIOError):
                reader.read(2)
            with self.assertRaises(ArchiveIOError):
                reader.readObjects(1, 2)
            self.assertEqual(reader.tell(), 0)

    def testIndependentReaders(self):
        first = self.archive.openRead('A.TXT')
        second = self.archive.openRead('a.txt')
        try:
            self.assertEqual(first.read(2), b'he')
            self.assertEqual(second.read(4), b'hell')
            self.assertEqual(first.read(), b'llo')
            self.assertEqual(second.read(), b'o')
        finally:
            first.close()
            second.close()

    def testWriteIsRejected(self):
        with self.archive.openRead('A.TXT') as reader:
            self.assertTrue(reader.readable())
            self.assertTrue(reader.seekable())
            self.assertFalse(reader.writable())

            with self.assertRaises(NotSupportedError):
                reader.write(b'x')
            with self.assertRaises(NotSupportedError):
                reader.append(b'x')
            with self.assertRaises(NotSupportedError):
                reader.truncate(0)

    def testClose(self):
        reader = self.archive.openRead('A.TXT')
        stream = self.fileSystem.streams[-1]
        reader.close()

        self.assertTrue(reader.closed)
        self.assertTrue(stream.closed)

        # Closing twice is harmless
        reader.close()

        with self.assertRaises(ValueError):
            reader.read(1)
        with self.assertRaises(ValueError):
            reader.seek(0)
        with self.assertRaises(ValueError):
            reader.tell()

    def testCloseFailure(self):
        reader = self.archive.openRead('A.TXT')
        stream = self.fileSystem.streams[-1]
        stream.failClose = True

        with self.assertRaises(ArchiveIOError):
            reader.close()
        self.assertFalse(reader.closed)

        stream.failClose = False
        reader.close()
        self.assertTrue(reader.closed)

    def testOpenFailure(self):
        self.fileSystem.failOpen = True
        with self.assertRaises(ArchiveIOError) as context:
            self.archive.openRead('A.TXT')
        self.assertEqual(context.exception.name, 'A.TXT')

    def testSeekFailureOnOpenReleasesStream(self):
        self.fileSystem.failSeekOnOpen = True
        with self.assertRaises(ArchiveIOError):
            self.archive.openRead('b.txt')
        self.assertTrue(self.fileSystem.streams[-1].closed)

    def testProperties(self):
        entry = self.archive.getEntry('b.txt')
        with EntryReader(self.archive, entry) as reader:
            self.assertIs(reader.entry, entry)
            self.assertEqual(reader.name, 'b.txt')
            self.assertIs(reader.archive, self.archive)
            self.assertEqual(reader.fileLength(), 3)
            self.assertIn('b.txt', repr(reader))

    def testReaderOutlivesArchiveHandle(self):
        reader = self.archive.openRead('b.txt')
        self.archive.close()
        try:
            self.assertEqual(reader.read(), b'abc')
        finally:
            reader.close()


class TruncatedPayloadTest(unittest.TestCase):
    """The directory promises more bytes than the file holds"""

    def setUp(self):
        data = buildGRP([('SHORT.DAT', b'abcde')])
        self.data = data[:-2] # only 'abc' left
        self.archive = Archive.open('short.grp', fileSystem=MemoryFileSystem({'short.grp': self.data}))

    def testReadStopsAtFileEnd(self):
        with self.archive.openRead('SHORT.DAT') as reader:
            self.assertEqual(reader.read(), b'abc')
            self.assertEqual(reader.tell(), 3)
            self.assertFalse(reader.eof())

    def testPartialUnitIsNotConsumed(self):
        with self.archive.openRead('SHORT.DAT') as reader:
            # 'abc' is one whole 2-byte unit plus a partial one
            self.assertEqual(reader.readObjects(2, 2), b'ab')
            self.assertEqual(reader.tell(), 2)
            self.assertEqual(reader.readObjects(1, 5), b'c')
            self.assertEqual(reader.tell(), 3)


if __name__ == '__main__':
    unittest.main()
