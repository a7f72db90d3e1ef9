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

import argparse
import json
import os
import logging
import logging.config
import platform
import sys

from flatarc.Kernel import PUBLIC_VERSION, LOG_LEVEL_MAPPING, getLogger, configureGlobalLogLevel
from flatarc.Settings import EXTRACT_CHUNK_SIZE, SettingsGetter
from flatarc.Utils import flushPrint, formatSize, formatTime, getEnv
from flatarc.Errors import ArchiveError, InvalidArgumentError, UnsupportedFormatError
from flatarc.Formats import SUPPORTED_FORMATS, findFormat
from flatarc.Archive import Archive, detectFormat

logger = getLogger(__name__)


def configureLogging(logLevel):
    """Configure logging level using Kernel's centralized configuration or a config file

    Priority order:
    1. logLevel parameter (from --log-level CLI argument)
    2. FLATARC_LOGGING_LEVEL environment variable
    3. Default to None (no configuration change)

    Both can be a level name (DEBUG, INFO, WARNING, ERROR) or a path to a
    logging configuration JSON file.
    """

    def suppressNoisyLogger():
        logging.getLogger('sentry_sdk').setLevel(logging.INFO)

    if logLevel is None:
        logLevel = getEnv('FLATARC_LOGGING_LEVEL', None)

    if logLevel is None:
        suppressNoisyLogger()
        return None

    if os.path.isfile(logLevel):
        try:
            with open(logLevel, 'r') as configFile:
                configDict = json.load(configFile)

            logging.config.dictConfig(configDict)
            logger.info(f"Logging configured from file: {logLevel}")
            suppressNoisyLogger()
            return logLevel

        except (json.JSONDecodeError, OSError, KeyError, ValueError) as e:
            flushPrint(f"Failed to load logging config from {logLevel}: {e}")
            flushPrint("Falling back to default logging level configuration")

    level = LOG_LEVEL_MAPPING.get(logLevel.upper())
    if level is not None:
        configureGlobalLogLevel(level)
        logger.info(f"Logging level set to {logLevel}")
    else:
        logger.warning(f"Invalid logging level '{logLevel}', using WARNING as default")
        configureGlobalLogLevel(logging.WARNING)

    suppressNoisyLogger()
    return logLevel


def showVersion():
    """Display version information and the formats this build reads"""
    flushPrint(f"FlatArc v{PUBLIC_VERSION}")
    flushPrint("")

    settingsGetter = SettingsGetter.getInstance()
    enabled = settingsGetter.getFormats()

    flushPrint("Formats:")
    for descriptor in SUPPORTED_FORMATS:
        status = "[OK] Enabled" if descriptor in enabled else "[OFF] Disabled"
        flushPrint(f"  {descriptor.extension:<6} {descriptor.description:<32} {status}")

    flushPrint("")
    uname = platform.uname()
    flushPrint(f"Architecture: {uname.system} {uname.release} {uname.machine}")
    flushPrint(f"Support: {settingsGetter.getSupportURL()}")


def configureCLIParser():
    """Configure the parser with a shared parent for global options

    Returns:
        tuple: (parser, globalsParent)
    """

    def validateLogLevel(logLevel):
        """Validate log level for argparse"""
        # Allow file paths (they'll be validated later)
        if os.path.exists(logLevel):
            return logLevel

        validLevels = list(LOG_LEVEL_MAPPING.keys())
        if logLevel.upper() not in validLevels:
            raise argparse.ArgumentTypeError(
                f"Invalid log level '{logLevel}'. Valid levels are: {', '.join(validLevels)}"
            )
        return logLevel.upper()

    def validateFormat(formatName):
        """Validate archive format for argparse"""
        descriptor = findFormat(formatName)
        if descriptor is None:
            choices = ', '.join(d.extension.lower() for d in SUPPORTED_FORMATS)
            raise argparse.ArgumentTypeError(f"Unknown format '{formatName}'. Valid formats are: {choices}")
        return descriptor

    # === 1) Global parameters in a parent parser ===
    globalsParent = argparse.ArgumentParser(add_help=False, exit_on_error=False)
    globalsParent.add_argument("--version", action="store_true", help="Show version information and formats")
    globalsParent.add_argument(
        "--log-level",
        type=validateLogLevel,
        help="Set logging level (DEBUG, INFO, WARNING, ERROR) or path to logging config JSON file (default: WARNING)",
        metavar="LEVEL_OR_FILE",
        dest="logLevel"
    )
    globalsParent.add_argument(
        "--format",
        type=validateFormat,
        help="Read the archive as this format instead of detecting it from the signature (mvl, grp)",
        metavar="FORMAT",
        dest="descriptor"
    )

    # === 2) Main parser + subparsers; all inherit from globalsParent ===
    parser = argparse.ArgumentParser(
        prog="flatarc",
        description="FlatArc lists and extracts files from MVL and GRP archives.",
        parents=[globalsParent],
        exit_on_error=False,
    )
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    listSubparser = subparsers.add_parser(
        'list', help='List the files in an archive', parents=[globalsParent], exit_on_error=False
    )
    listSubparser.add_argument("archive", metavar="ARCHIVE", help="Archive to read")

    infoSubparser = subparsers.add_parser(
        'info', help='Show archive format and layout', parents=[globalsParent], exit_on_error=False
    )
    infoSubparser.add_argument("archive", metavar="ARCHIVE", help="Archive to read")

    catSubparser = subparsers.add_parser(
        'cat', help='Write one file from an archive to stdout', parents=[globalsParent], exit_on_error=False
    )
    catSubparser.add_argument("archive", metavar="ARCHIVE", help="Archive to read")
    catSubparser.add_argument("name", metavar="NAME", help="File inside the archive")

    extractSubparser = subparsers.add_parser(
        'extract', help='Extract files from an archive', parents=[globalsParent], exit_on_error=False
    )
    extractSubparser.add_argument("archive", metavar="ARCHIVE", help="Archive to read")
    extractSubparser.add_argument("names", metavar="NAME", nargs='*', help="Files to extract (default: all)")
    extractSubparser.add_argument(
        "--output", "-o", metavar="DIR", default='.', help="Output directory (default: current directory)"
    )

    probeSubparser = subparsers.add_parser(
        'probe', help='Check whether a file is a supported archive', parents=[globalsParent], exit_on_error=False
    )
    probeSubparser.add_argument("archive", metavar="ARCHIVE", help="File to check")

    return parser, globalsParent


def openArchive(args):
    settingsGetter = SettingsGetter.getInstance()
    return Archive.open(
        args.archive,
        descriptor=args.descriptor,
        fileSystem=settingsGetter.getFileSystem(),
        formats=settingsGetter.getFormats(),
    )


def listArchive(args):
    with openArchive(args) as archive:
        flushPrint(f"{'Name':<13} {'Size':>10} {'Offset':>10}")
        for entry in archive.entries:
            flushPrint(f"{entry.name:<13} {formatSize(entry.size):>10} {entry.startOffset:>10}")
        flushPrint(f"{archive.entryCount} file(s)")
    return 0


def showInfo(args):
    with openArchive(args) as archive:
        descriptor = archive.descriptor
        flushPrint(f"Archive:  {archive.path}")
        flushPrint(f"Format:   {descriptor.extension} ({descriptor.description})")
        flushPrint(f"Files:    {archive.entryCount}")
        flushPrint(f"Modified: {formatTime(archive.lastModifiedTime)}")
        flushPrint(f"Payload:  ends at {archive.payloadEnd}")
        flushPrint(f"Size:     {archive.archiveSize} ({formatSize(archive.archiveSize)})")

        if archive.payloadEnd > archive.archiveSize:
            flushPrint("Warning: the archive is truncated")
    return 0


def copyEntry(reader, output, chunkSize=EXTRACT_CHUNK_SIZE):
    copied = 0
    while True:
        chunk = reader.read(chunkSize)
        if not chunk:
            break
        output.write(chunk)
        copied += len(chunk)
    return copied


def catEntry(args, output=None):
    if output is None:
        output = sys.stdout.buffer

    with openArchive(args) as archive:
        with archive.openRead(args.name) as reader:
            copyEntry(reader, output)
    output.flush()
    return 0


def isSafeOutputName(name):
    return bool(name) and name not in ('.', '..') and '/' not in name and '\\' not in name and ':' not in name


def extractEntries(args):
    os.makedirs(args.output, exist_ok=True)

    with openArchive(args) as archive:
        descriptor = archive.descriptor

        if args.names:
            selected = [archive.getEntry(name) for name in args.names]
        else:
            selected = list(archive.entries)

        extracted = set()
        for entry in selected:
            key = descriptor.nameKey(entry.name)
            if key in extracted:
                logger.debug(f"Skipping duplicate entry {entry.name}")
                continue

            if not isSafeOutputName(entry.name):
                logger.warning(f"Skipping entry with unusable name {entry.name!r}")
                continue

            target = os.path.join(args.output, entry.name)
            with archive.openEntry(entry) as reader, open(target, 'wb') as f:
                copied = copyEntry(reader, f)

            extracted.add(key)
            flushPrint(f"{entry.name} ({formatSize(copied)})")

        flushPrint(f"Extracted {len(extracted)} file(s) to {args.output}")
    return 0


def probeArchive(args):
    settingsGetter = SettingsGetter.getInstance()
    fileSystem = settingsGetter.getFileSystem()

    if args.descriptor is not None:
        formats = (args.descriptor,)
    else:
        formats = settingsGetter.getFormats()

    try:
        descriptor = detectFormat(args.archive, fileSystem, formats)
    except UnsupportedFormatError:
        flushPrint(f"{args.archive}: not a supported archive")
        return 1

    flushPrint(f"{args.archive}: {descriptor.extension} archive ({descriptor.description})")
    return 0


COMMANDS = {
    'list': listArchive,
    'info': showInfo,
    'cat': catEntry,
    'extract': extractEntries,
    'probe': probeArchive,
}


def processCommand(args, output=None):
    """
    Run the parsed command.

    Args:
        args: Parsed arguments
        output: Binary stream for `cat` (default: stdout)

    Returns:
        int: Exit code; archive and I/O errors are reported and give 1
    """
    command = COMMANDS.get(args.command)
    if command is None:
        raise InvalidArgumentError(f"Unknown command: {args.command}")

    try:
        # Only cat writes entry bytes, the other commands print text
        if command is catEntry:
            return catEntry(args, output=output)
        return command(args)
    except ArchiveError as e:
        logger.debug(f"{args.command} failed: {e!r}")
        flushPrint(f"Error: {e}")
        return 1
    except OSError as e:
        logger.debug(f"{args.command} failed: {e!r}")
        flushPrint(f"Error: {e}")
        return 1
