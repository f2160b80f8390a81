"""
Backend adapters (dialogue engine, intent service, knowledge search) and
the HTTP banking client.
"""

from .errors import AdapterError, BackendConfigError  # noqa: F401
