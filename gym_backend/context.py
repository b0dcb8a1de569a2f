"""
Name: Request Context (ContextVars)

Responsibilities:
  - Hold request-scoped data (request_id, method, path, principal)
  - Let the bearer dependency bind the authenticated username
  - Feed the JSON log formatter so account events carry who and which request

Collaborators:
  - middleware.py: binds request_id/method/path and resets them afterwards
  - identity.auth_users: binds the principal once a token validates
  - logger.py: reads the context for log enrichment

Constraints:
  - Only primitive types (str)
  - Empty string means "unset" and is left out of logs
"""

from contextvars import ContextVar, Token

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")

# R: Username from a validated access token; empty on anonymous routes
principal_var: ContextVar[str | None] = ContextVar("principal", default=None)

_LOG_FIELDS = (
    ("request_id", request_id_var),
    ("method", http_method_var),
    ("path", http_path_var),
)


def bind_request(request_id: str, method: str, path: str) -> list[tuple[ContextVar, Token]]:
    """R: Bind the request fields; returns tokens for reset_context()."""
    return [
        (request_id_var, request_id_var.set(request_id)),
        (http_method_var, http_method_var.set(method)),
        (http_path_var, http_path_var.set(path)),
        (principal_var, principal_var.set(None)),
    ]


def bind_principal(username: str) -> None:
    principal_var.set(username)


def reset_context(tokens: list[tuple[ContextVar, Token]]) -> None:
    """R: Restore the values that were current before bind_request()."""
    for var, token in reversed(tokens):
        var.reset(token)


def get_context_dict() -> dict:
    """
    R: Current context for log enrichment (unset values omitted).

    A principal of "" is kept: it is a valid degenerate username.
    """
    ctx = {name: var.get() for name, var in _LOG_FIELDS if var.get()}
    principal = principal_var.get()
    if principal is not None:
        ctx["principal"] = principal
    return ctx
