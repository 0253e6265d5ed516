"""
logview — client-side log store for a log-viewing application.

Uploads log files to a backend log service, fetches stored entries with an
accumulating filter set, and derives the unique module names of the result.
"""

__version__ = "0.1.0"
