class AdapterError(RuntimeError):
    """A backend call failed (transport, auth, SDK or malformed response)."""

    def __init__(self, backend: str, message: str):
        super().__init__(f"{backend}: {message}")
        self.backend = backend


class BackendConfigError(AdapterError):
    """A backend is missing the configuration it needs to be called."""
