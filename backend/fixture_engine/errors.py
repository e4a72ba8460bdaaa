"""
Error taxonomy for fixture generation and results recording.

Entry points never let these escape to the caller: generation folds them into a
FixtureGenerationResult and recording folds them into a RecordOutcome.
"""


class FixtureEngineError(Exception):
    """Base class for all fixture engine errors"""

    pass


class InputValidationError(FixtureEngineError):
    """Raised when teams or phase configuration cannot be used for generation"""

    pass


class GenerationError(FixtureEngineError):
    """Raised when a generator fails internally (e.g. a group sub-generator)"""

    pass


class ConstraintViolation(FixtureEngineError):
    """Raised when a hard scheduling constraint cannot be satisfied"""

    def __init__(self, violations):
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))


class MatchNotFound(FixtureEngineError):
    """Raised when a result is submitted for a match the store does not know"""

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Match not found: {match_id}")


class PersistenceFailure(FixtureEngineError):
    """Raised when the storage collaborator fails to read or write"""

    pass


class InvalidStatusTransition(FixtureEngineError):
    """Raised when a result would move a match backwards in its lifecycle"""

    def __init__(self, current: str, new: str):
        self.current = current
        self.new = new
        super().__init__(f"Invalid status transition: {current} -> {new}")
