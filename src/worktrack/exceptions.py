"""Exceptions raised by WorkTrack.

Malformed input never raises; these cover misuse by the host program.
"""


class WorkTrackError(Exception):
    """Base exception for WorkTrack errors"""
    pass


class ExpressionError(WorkTrackError):
    """Raised when a filter expression cannot be compiled"""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Invalid filter expression {expression!r}: {reason}")


class ProfileBuildError(WorkTrackError):
    """Raised when enter/leave calls do not form a well-formed traversal"""
    pass
