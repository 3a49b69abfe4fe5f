"""
Error taxonomy for the sky engine.

Every failure is a synchronous contract violation raised at the call that
caused it. Nothing is retried internally.

    InvalidArgumentError        value outside its documented range
    IllegalStateError           slot used before bound, enable without host
    ConfigurationOverflowError  object/layer counts exceed every material shape
"""
from __future__ import annotations


class SkyError(Exception):
    """Base class for all sky engine errors."""


class InvalidArgumentError(SkyError, ValueError):
    pass


class IllegalStateError(SkyError, RuntimeError):
    pass


class ConfigurationOverflowError(SkyError, ValueError):
    pass
