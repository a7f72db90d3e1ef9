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
import json
import logging
import threading

# Error reporting is disabled unless a SENTRY_DSN is configured explicitly.
import sentry_sdk

from enum import Enum
from pathlib import Path

from signalslot import Signal

from sentry_sdk.integrations.logging import SentryHandler, LoggingIntegration
from sentry_sdk.integrations import atexit as sentryAtexit

PUBLIC_VERSION = '1.0.0'

# Map string levels to logging constants for standard level names
LOG_LEVEL_MAPPING = {'DEBUG': logging.DEBUG, 'INFO': logging.INFO, 'WARNING': logging.WARNING, 'ERROR': logging.ERROR}


def configureGlobalLogLevel(logLevel):
    """
    Configure the global logging level for the application.
    This affects all loggers created via getLogger().

    Args:
        logLevel: Logging level (logging.DEBUG, logging.INFO, etc.)
    """
    rootLogger = logging.getLogger()
    rootLogger.setLevel(logLevel)

    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    # Add console handler if none exists
    if not rootLogger.handlers:
        consoleHandler = logging.StreamHandler()
        consoleHandler.setLevel(logLevel)
        consoleHandler.setFormatter(formatter)
        rootLogger.addHandler(consoleHandler)
    else:
        # Update existing handlers
        for handler in rootLogger.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, SentryHandler):
                handler.setLevel(logLevel)
                handler.setFormatter(formatter)


if os.getenv('FLATARC_LOGGING_LEVEL'):
    logLevel = LOG_LEVEL_MAPPING.get(os.getenv('FLATARC_LOGGING_LEVEL').upper())
    if logLevel is not None:
        configureGlobalLogLevel(logLevel)


def getLogger(name, version=PUBLIC_VERSION):
    """
    Get a logger with Sentry integration. Uses Sentry's own initialization state to avoid duplicate setup.
    SENTRY_DSN is looked up through SecretGetter; without it nothing is ever reported.

    Args:
        name: Logger name
        version: Version string for logging context
    """
    try:
        notInit = not sentry_sdk.get_client().is_active()
        sentryInitialized = False

        if notInit:
            sentryDsn = SecretGetter.getInstance().get('SENTRY_DSN')

            if sentryDsn:
                # Suppress "sentry is attempting to send pending events..." on exit
                sentryAtexit.default_callback = lambda pending, timeout: None

                sentry_sdk.init(
                    dsn=sentryDsn,
                    default_integrations=False,
                    integrations=[
                        LoggingIntegration(),
                        sentryAtexit.AtexitIntegration(),
                    ],
                )
                sentryInitialized = True

        logger = logging.getLogger(name)

        if not any(isinstance(h, SentryHandler) for h in logger.handlers):
            formatter = logging.Formatter('%(asctime)s version[%(version)s] : %(message)s')

            syslog = SentryHandler()
            syslog.setFormatter(formatter)
            logger.addHandler(syslog)

        logger = logging.LoggerAdapter(logger, {'version': version or 'unknown'})

        if sentryInitialized:
            logger.debug('Sentry initialized')

        return logger

    except Exception as e:
        fallbackLogger = logging.getLogger(name)

        # If Sentry setup fails, log the error and continue with standard logging
        fallbackLogger.warning(f"Failed to initialize Sentry: {e}")

        return fallbackLogger


class Singleton:
    """
    Thread-safe singleton base class that can be inherited by other classes.
    Subclasses override initialize() for custom one-time initialization.
    """

    _instances = {}
    _lock = threading.Lock()

    def __new__(cls, *args, **kwargs):
        if cls not in cls._instances:
            with cls._lock:
                if cls not in cls._instances:
                    cls._instances[cls] = super().__new__(cls)
        return cls._instances[cls]

    def __init__(self, *args, **kwargs):
        if not hasattr(self, '_initialized'):
            self.initialize(*args, **kwargs)
            self._initialized = True

    def initialize(self, *args, **kwargs):
        """Called once, when the singleton instance is first created."""
        pass

    @classmethod
    def getInstance(cls):
        if cls not in cls._instances:
            cls()
        return cls._instances[cls]


class SecretGetter(Singleton):
    """
    Looks secrets up in environment variables first, then in a JSON file
    (~/.flatarc/.secret by default). Values are cached after the first hit.
    """

    DEFAULT_SECRET_FILE = os.path.join('~', '.flatarc', '.secret')

    def initialize(self, secretPath=DEFAULT_SECRET_FILE):
        self.secretPath = os.path.expanduser(secretPath)
        self._cache = {}
        self._secretData = None

    def _loadSecretFile(self):
        if self._secretData is not None:
            return

        if not os.path.exists(self.secretPath):
            self._secretData = {}
            return

        try:
            self._secretData = json.loads(Path(self.secretPath).read_text())
        except (json.JSONDecodeError, OSError) as e:
            logging.getLogger(__name__).warning(f"Failed to load secret file {self.secretPath}: {e}")
            self._secretData = {}

    def get(self, key: str):
        """
        Get secret value by key.

        Returns:
            str or None: Secret value if found, None otherwise
        """
        if self._cache.get(key):
            return self._cache[key]

        value = os.getenv(key)
        if value:
            self._cache[key] = value
            return value

        self._loadSecretFile()

        value = self._secretData.get(key)
        if value:
            self._cache[key] = value

        return value


class EventTiming(Enum):
    """Constants for event timing phases"""
    BEFORE = "BEFORE"
    AFTER = "AFTER"


class EventService(Singleton):
    """
    Dispatches events to observers. Each registered event owns a pair of
    'signalslot' signals, one fired before and one fired after the action.
    """

    def initialize(self):
        self.signals = {}

    def reset(self):
        """
        Disconnects every observer but keeps the registered events.
        Should only be used in test suites to ensure test isolation.
        """
        self.signals = {event: (Signal(), Signal()) for event in self.signals}

    def _normalizeTiming(self, timing):
        if timing is None:
            return None

        if isinstance(timing, EventTiming):
            return timing

        if isinstance(timing, str):
            try:
                return EventTiming(timing.upper())
            except ValueError:
                raise ValueError(f"Invalid timing value: '{timing}'. Must be 'BEFORE' or 'AFTER'.")

        raise ValueError(f"Timing must be EventTiming enum, string, or None. Got: {type(timing)}")

    def trigger(self, event, *args, **kwargs):
        """
        Trigger an event, calling all connected observers (slots).
        """
        timing = kwargs.pop('timing', None)
        normalizedTiming = self._normalizeTiming(timing)

        signalObjects = self.signals.get(event)
        if not signalObjects:
            return

        beforeSignal, afterSignal = signalObjects

        if normalizedTiming in (EventTiming.BEFORE, None):
            beforeSignal.emit(*args, **kwargs)

        if normalizedTiming in (EventTiming.AFTER, None):
            afterSignal.emit(*args, **kwargs)

    def isRegistered(self, event):
        return event in self.signals

    def register(self, event):
        if self.isRegistered(event):
            return False
        self.signals[event] = (Signal(), Signal())
        return True

    def subscribe(self, event, observer, timing=EventTiming.AFTER):
        if not self.isRegistered(event):
            raise KeyError(f"You must register event '{event}' first.")

        normalizedTiming = self._normalizeTiming(timing)
        if normalizedTiming not in (EventTiming.BEFORE, EventTiming.AFTER):
            raise ValueError("Timing must be EventTiming.BEFORE or EventTiming.AFTER.")

        signalObject = self.signals[event][0 if normalizedTiming == EventTiming.BEFORE else 1]
        if not signalObject.is_connected(observer):
            signalObject.connect(observer)

    def unsubscribe(self, event, observer, timing=None):
        if not self.isRegistered(event):
            return

        timingsToCheck = [self._normalizeTiming(timing)] if timing else [EventTiming.BEFORE, EventTiming.AFTER]

        for t in timingsToCheck:
            signalObject = self.signals[event][0 if t == EventTiming.BEFORE else 1]
            if signalObject.is_connected(observer):
                signalObject.disconnect(observer)


class Event:
    """ Simple Event wrapper"""

    def __init__(self, key):
        self.key = key

        self.eventService = EventService.getInstance()

    def subscribe(self, observer, timing=EventTiming.AFTER):
        return self.eventService.subscribe(self.key, observer, timing=timing)

    def unsubscribe(self, observer, timing=None):
        return self.eventService.unsubscribe(self.key, observer, timing=timing)

    def trigger(self, *args, **kwargs):
        return self.eventService.trigger(self.key, *args, **kwargs)


# Event pattern: RESTful + /[action]
class ArchiveEvent:
    archiveOpen = Event('/archive/open')
    archiveClose = Event('/archive/close')
    entryOpen = Event('/archive/entry/open')


eventService = EventService.getInstance()

eventService.register(ArchiveEvent.archiveOpen.key)
eventService.register(ArchiveEvent.archiveClose.key)
eventService.register(ArchiveEvent.entryOpen.key)
