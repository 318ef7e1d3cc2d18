"""
Elapsed-time helpers for the stream loop.

All functions take an injectable clock so the loop can be driven
without real time passing.
"""

import math
import time


def time_diff(start, now=None, clock=time.monotonic):
    """Seconds elapsed since ``start``."""
    if now is None:
        now = clock()
    return now - start


def interval_slot(start, interval, now=None, clock=time.monotonic):
    """
    Index of the ``interval``-second window the elapsed time falls in.

    Counts whole elapsed seconds, so slot n starts at n * interval.
    Returns -1 when ``interval`` is not positive.
    """
    if not interval or interval <= 0:
        return -1
    return math.floor(time_diff(start, now, clock)) // interval


class ManualClock:
    """Clock that only moves when told to. Usable as both clock and sleep."""

    def __init__(self, start=0.0):
        self.now = float(start)
        self.sleeps = []

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.advance(seconds)
