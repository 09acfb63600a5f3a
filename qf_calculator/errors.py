"""
qf_calculator/errors.py — Exception hierarchy.

NotFoundError subclasses map to a "not found" outcome for callers (CLI exit
code 2, a 404 in an HTTP wrapper). Everything else under QFCalculatorError is
an internal failure of the calculation request.
"""


class QFCalculatorError(Exception):
    """Base class for calculation failures reported to the caller."""


class NotFoundError(QFCalculatorError):
    """Requested data does not exist."""


class DataSourceUnavailableError(NotFoundError):
    """One of the round's data files cannot be loaded."""

    def __init__(self, description: str):
        super().__init__(f"cannot find {description} file")
        self.description = description


class RoundNotFoundError(NotFoundError):
    """The round id is absent from the round configuration source."""

    def __init__(self, round_id: str):
        super().__init__(f"round {round_id} not found")
        self.round_id = round_id


class MissingMetadataError(QFCalculatorError):
    """A matched recipient has no application metadata record."""

    def __init__(self, recipient: str):
        super().__init__(f"no application metadata for recipient {recipient}")
        self.recipient = recipient
