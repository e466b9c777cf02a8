# verifier/errors.py
class VerifierError(Exception):
    """Base class for errors surfaced to callers of the fact-check pipeline."""


class InvalidRequest(VerifierError):
    """Neither text nor url was supplied."""

    def __init__(self, message: str = "Provide either text or url"):
        super().__init__(message)


class GenerationFailure(VerifierError):
    """The verdict generator call itself failed (network, auth, timeout)."""
