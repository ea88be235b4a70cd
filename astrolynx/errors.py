"""Errors that escape a conversation turn."""


class ServiceUnavailableError(RuntimeError):
    """A required client (model, vector store, session store) was never initialized."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Chat service not fully initialized: missing {', '.join(missing)}")
