"""
Exception hierarchy for the rules engine.

Rejected player commands are not errors: they return False and leave the
state untouched. These exceptions signal misuse of the engine itself.
"""


class CreditopolyError(Exception):
    """Base exception for all engine errors."""


class GameSetupError(CreditopolyError):
    """Game could not be created from the given players."""


class UnknownCommandError(CreditopolyError):
    """Command type has no handler."""
