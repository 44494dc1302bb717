"""Google Calendar feed with OAuth and title exclusion rules.

Polls one or more Google calendars on behalf of a host, drops events whose
title matches the host's ``excludedEvents`` rules and reports the rest on a
fixed schedule. The Google OAuth lifecycle (consent, token persistence,
reuse) is handled here as well.
"""

__version__ = "0.1.0"
