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
import sys

import bitmath

from datetime import datetime

from flatarc.Kernel import getLogger
from flatarc.Settings import SettingsGetter

ONE_KB = 1000
ONE_MB = ONE_KB * 1000
ONE_GB = ONE_MB * 1000

logger = getLogger(__name__)


# flush is required when stdout is a pipe and output is interleaved with logging
def flushPrint(text):
    try:
        print(text, flush=True)
    except UnicodeEncodeError as e:
        # Entry names are latin-1, which not every console encoding can show
        logger.debug(f"UnicodeEncodeError during print, using fallback encoding: {e}, {sys.stdout.encoding=}")

        buf = getattr(sys.stdout, "buffer", None)
        if buf is not None:
            buf.write(text.encode("utf-8", errors="replace"))
            buf.write(b"\n")
            buf.flush()
            return

        print(text.encode(sys.stdout.encoding, errors='replace').decode(sys.stdout.encoding), flush=True)


def formatSize(size, decimal=None, plural=None):
    if decimal is None:
        decimal = 0 if size < ONE_MB else 1

    if plural is None:
        plural = size != 1

    if size < ONE_KB:
        # Unit names for plain bytes differ between bitmath releases
        return f"{size:.{decimal}f} " + ('Bytes' if plural else 'Byte')

    sizeStr = bitmath.Byte(size).best_prefix(system=bitmath.SI).format("{value:.%df}{unit}" % decimal)
    return sizeStr.replace('B', '').upper()


def formatTime(timestamp):
    if timestamp is None:
        return '-'
    return datetime.fromtimestamp(timestamp).strftime('%Y-%m-%d %H:%M:%S')


def sendException(logger, e, action=None, errorPrefix="Error"):
    if e and errorPrefix:
        flushPrint(f'{errorPrefix}: {e}')
    elif e:
        flushPrint(f'{e}')
    else:
        logger.error(f'Incorrect argument: {errorPrefix=} {e=}')

    if action:
        flushPrint(action)

    try:
        supportURL = SettingsGetter.getInstance().getSupportURL()
        flushPrint(f'\nIf this looks like a bug, please report it at {supportURL}.\n')
    except RuntimeError:
        pass # Settings not initialized, e.g. when used as a library

    logger.exception(e)

    if getEnv('RAISE_EXCEPTION', False) and isinstance(e, BaseException):
        raise e


# Helper functions for environment variable configuration
def getEnv(envVar, default):
    """Safely get value from environment variable with automatic type detection based on default"""
    try:
        value = os.getenv(envVar)
        if value is not None:
            if default is None:
                return value

            # Automatically detect type based on default value
            if isinstance(default, bool):
                return value == "True"
            elif isinstance(default, int):
                return int(value)
            elif isinstance(default, float):
                return float(value)
            elif isinstance(default, str):
                return str(value)
            else:
                return type(default)(value)
        return default
    except (ValueError, TypeError):
        return default
