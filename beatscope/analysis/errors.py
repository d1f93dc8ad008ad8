"""Exceptions raised by the analysis engine."""


class AnalysisError(Exception):
    """Base class for analysis engine errors."""


class ConfigurationError(AnalysisError, ValueError):
    """Engine parameters are invalid, or the engine was used before configure()."""


class InputShapeError(AnalysisError, ValueError):
    """A frame's arrays do not match each other or the configured bin count.

    The tick is rejected without touching detector state; callers should skip
    it and supply a corrected frame next time.
    """
