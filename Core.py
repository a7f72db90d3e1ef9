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

import platform
import sys
import argparse

from flatarc.Kernel import getLogger
from flatarc.Settings import SettingsGetter
from flatarc.CLI import configureCLIParser, configureLogging, processCommand, showVersion
from flatarc.Utils import flushPrint, sendException

logger = getLogger(__name__)


def setupSettings():
    return SettingsGetter(platform=platform.system())


# Initialize SettingsGetter
settingsGetter = setupSettings()


def runCLIMain(argv=None, output=None):
    """Run the program using two-phase parsing

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])
        output: Binary stream for entry data (default: stdout)

    Returns:
        int: Exit code
    """
    parser, globalsParent = configureCLIParser()

    if argv is None:
        argv = sys.argv[1:]

    if len(argv) == 0:
        parser.print_help()
        return 0

    # Phase 1: Use globalsParent to separate global args from the rest
    try:
        globalArgs, rest = globalsParent.parse_known_args(argv)
    except argparse.ArgumentError as e:
        parser.error(str(e))

    configureLogging(globalArgs.logLevel)

    if globalArgs.version:
        showVersion()
        return 0

    if not rest:
        parser.print_help()
        return 0

    # Phase 2: Final parsing with subcommand determined
    try:
        args = parser.parse_args(argv)
    except argparse.ArgumentError as e:
        parser.error(str(e))

    # Global options given before the command are reset by the subparser defaults
    for option in ('descriptor', 'logLevel'):
        if getattr(args, option, None) is None:
            setattr(args, option, getattr(globalArgs, option))

    if args.command is None:
        parser.print_help()
        return 0

    return processCommand(args, output=output)


def main():
    try:
        return runCLIMain()
    except KeyboardInterrupt:
        flushPrint('\nExiting on user request (Ctrl+C)...')
        return 0


if __name__ == '__main__':
    try:
        exitCode = main()
        sys.exit(exitCode or 0)
    except BrokenPipeError:
        # e.g. `flatarc cat ... | head`
        sys.exit(0)
    except Exception as e:
        sendException(logger, e)
        sys.exit(1)
