"""
Failures that end a section analysis run.

Degenerate sections and pages without sections are not errors: they are
recorded in the slicing result and reported as an empty result respectively.
"""


class AnalysisError(Exception):
    """Base class for failures that abort a whole run."""


class NavigationFailure(AnalysisError):
    """Bad URL, network error, or a navigation/capture deadline was exceeded."""


class AnalysisCancelled(AnalysisError):
    """The caller asked the run to stop between pipeline stages."""
