"""Custom exception hierarchy for the insight engine.

Row-level data problems are never raised; they degrade to exclusion in
the normalizer.  Only caller bugs and bad configuration surface here.
"""


class InsightError(Exception):
    """Base exception for all insight engine errors."""


# --- Configuration ---
class ConfigError(InsightError):
    """Invalid or missing configuration."""


# --- Contract ---
class ContractViolationError(InsightError):
    """A collaborator handed the engine structurally impossible input.

    Raised for a non-iterable trade snapshot, or when an aggregation key
    extractor meets a record the normalizer could never have produced.
    """

    def __init__(self, component: str, reason: str):
        self.component = component
        self.reason = reason
        super().__init__(f"Contract violation [{component}]: {reason}")
