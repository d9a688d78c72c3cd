"""cadence: adaptive review scheduling engine."""

from cadence.consts import VERSION

__version__ = VERSION
