from __future__ import annotations


class InvalidMeasurementError(ValueError):
    """Measurement task completed without a usable numeric value."""


class UnknownFrequencyError(ValueError):
    """Raised at data entry only; period calculation falls back to DAILY instead."""


class InvalidRangeError(ValueError):
    pass


class NarrativeUnavailableError(RuntimeError):
    pass
