import contextvars
from contextlib import contextmanager

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)
run_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("run_id", default=None)
character_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("character", default=None)


def set_request_id(request_id: str) -> contextvars.Token:
    """Store the current request ID in a context variable."""
    return request_id_var.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    """Reset the request ID context variable to a previous state."""
    request_id_var.reset(token)


def get_request_id() -> str | None:
    """Retrieve the current request ID from the context."""
    return request_id_var.get()


def get_run_id() -> str | None:
    """Retrieve the current analysis run ID for logging."""
    return run_id_var.get()


def get_character() -> str | None:
    """Retrieve the character currently being processed, if any."""
    return character_var.get()


@contextmanager
def log_context(
    run_id: str | None = None,
    character: str | None = None,
):
    """Temporarily scope run/character context for structured logs."""
    tokens: list[tuple[contextvars.ContextVar[str | None], contextvars.Token]] = []
    if run_id is not None:
        tokens.append((run_id_var, run_id_var.set(run_id)))
    if character is not None:
        tokens.append((character_var, character_var.set(character)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
