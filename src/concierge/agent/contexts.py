"""
agent/contexts.py

Dialogflow output contexts as immutable values, plus the helpers the
fulfillment handler uses to read and clear them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

AUTH_CONTEXT = "authenticated"
AUTH_CONTEXT_LIFESPAN = 5


@dataclass(frozen=True)
class DialogContext:
    name: str
    lifespan_count: int = 0
    parameters: Dict[str, Any] = field(default_factory=dict)

    @property
    def short_name(self) -> str:
        return self.name.rsplit("/contexts/", 1)[-1]

    @classmethod
    def from_webhook(cls, raw: Dict[str, Any]) -> "DialogContext":
        """
        Build a context from webhook JSON. An unreadable lifespan counts as
        0 and non-object parameters as empty.
        """
        try:
            lifespan = int(raw.get("lifespanCount") or 0)
        except (TypeError, ValueError):
            lifespan = 0
        parameters = raw.get("parameters")
        return cls(
            name=str(raw.get("name") or ""),
            lifespan_count=lifespan,
            parameters=dict(parameters) if isinstance(parameters, dict) else {},
        )

    def to_webhook(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "lifespanCount": self.lifespan_count}
        if self.parameters:
            out["parameters"] = dict(self.parameters)
        return out


def find_auth_context(contexts: Sequence[DialogContext]):
    return next((c for c in contexts if c.short_name == AUTH_CONTEXT), None)


def is_authenticated(contexts: Sequence[DialogContext]) -> bool:
    auth = find_auth_context(contexts)
    return auth is not None and auth.parameters.get("authenticated") is True


def clear_contexts(contexts: Sequence[DialogContext]) -> List[DialogContext]:
    """
    Expire every context except `authenticated`, which is re-emitted with a
    fresh lifespan and its parameters.
    """
    cleared: List[DialogContext] = []
    auth = find_auth_context(contexts)
    if auth is not None:
        cleared.append(
            DialogContext(name=auth.name, lifespan_count=AUTH_CONTEXT_LIFESPAN, parameters=dict(auth.parameters))
        )
    cleared.extend(
        DialogContext(name=c.name, lifespan_count=0) for c in contexts if c.short_name != AUTH_CONTEXT
    )
    return cleared
