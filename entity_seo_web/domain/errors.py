class EntitySeoError(Exception):
    """Base class for errors raised by the service layer."""


class ValidationError(EntitySeoError):
    """Input cannot start a run (no personas, no targets, empty query)."""


class UpstreamError(EntitySeoError):
    """The model provider call failed (transport, credential, non-success status)."""


class ParseError(EntitySeoError):
    """Model output was not a well-formed result record. Never leaves the normalizer."""


class RunNotFoundError(EntitySeoError):
    def __init__(self, run_id: str):
        super().__init__(f"Run {run_id!r} not found.")
        self.run_id = run_id
