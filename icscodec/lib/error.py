#!/usr/bin/env python
import logging
import os
from typing import Optional

from icscodec import __version__

## one of DEBUG_PDB, DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("PYTHON_ICSCODEC_DEBUGMODE")
if not debugmode:
    if "dev" in __version__ or __version__ == "(unknown)":
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("icscodec")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


def assert_(condition: object) -> None:
    try:
        assert condition
    except AssertionError:
        if debugmode == "PRODUCTION":
            log.error(
                "Deviation from expectations found.  %s" % ERR_FRAGMENT, exc_info=True
            )
        elif debugmode == "DEBUG_PDB":
            log.error("Deviation from expectations found.  Dropping into debugger")
            import pdb

            pdb.set_trace()
        else:
            raise


ERR_FRAGMENT: str = "Please consider raising an issue, include this error, the traceback (if any) and the offending ics data"


class ICSError(Exception):
    """Base class for everything the codec raises or reports.

    ``property`` is the property name involved (if any), ``raw`` the
    offending text and ``reason`` a human readable explanation.
    """

    property: Optional[str] = None
    raw: Optional[str] = None
    reason: str = "no reason"

    def __init__(
        self,
        property: Optional[str] = None,
        raw: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        if property:
            self.property = property
        if raw is not None:
            self.raw = raw
        if reason:
            self.reason = reason
        super().__init__(self.reason)

    def __str__(self) -> str:
        ret = self.__class__.__name__
        if self.property:
            ret += " in %s" % self.property
        if self.raw is not None:
            ret += " (%r)" % self.raw
        return "%s, reason %s" % (ret, self.reason)


class DanglingContinuation(ICSError):
    """A folded continuation line appeared before any content line"""

    reason = "continuation line without a preceding line"


class MalformedProperty(ICSError):
    reason = "not a valid content line"


class UnbalancedComponent(ICSError):
    """
    BEGIN and END markers do not pair up.  The whole file is rejected,
    as partial structure cannot be trusted.
    """

    reason = "unbalanced BEGIN/END"


class InvalidValue(ICSError):
    reason = "value does not match its type grammar"


class ConflictingRecurrenceTerminator(ICSError):
    """
    RFC 5545 forbids both UNTIL and COUNT in one RRULE.  When decoding,
    UNTIL wins and this is reported as a warning.
    """

    property = "RRULE"
    reason = "both UNTIL and COUNT given, COUNT is ignored"


class UnknownFrequency(ICSError):
    property = "RRULE"
    reason = "FREQ must be one of DAILY, WEEKLY, MONTHLY, YEARLY"


class MissingRequiredProperty(ICSError):
    """Recorded when a VEVENT is skipped, i.e. because DTSTART is absent or broken"""

    reason = "required property missing"


class UnknownTimezone(ICSError):
    """Recorded when a TZID cannot be resolved, the value is then taken as floating time"""

    property = "TZID"
    reason = "timezone could not be resolved, treating as floating time"
