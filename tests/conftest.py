"""
Shared pytest configuration.

Engine modules log through structlog. Tests assert on returned reports and
printed summaries, so log events are filtered out entirely.
"""

from __future__ import annotations

import logging

import structlog

structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL))
