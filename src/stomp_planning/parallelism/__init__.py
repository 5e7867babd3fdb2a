"""Import classes used to run work concurrently with planning."""

from .watchdog import Watchdog as Watchdog
