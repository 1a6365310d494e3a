"""
Caller Identity Module

Answers "who invoked the current operation". Operations that omit an
identity parameter (balanceOf without an owner, mint without a receiver, ...)
fall back to the current caller.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
import contextvars
from typing import Optional


class CallerIdentity(ABC):
    """Abstract provider of the current caller identity"""

    @abstractmethod
    def current_caller(self) -> str:
        """Identity of the current invoker; "" when unknown"""
        pass


class StaticCallerIdentity(CallerIdentity):
    """Always reports the same caller"""

    def __init__(self, identity: str):
        self.identity = identity

    def current_caller(self) -> str:
        return self.identity


# Per-context caller, set for the duration of a request
_current_caller = contextvars.ContextVar('current_caller', default=None)


def get_current_caller() -> Optional[str]:
    """Get the caller bound to this context"""
    return _current_caller.get()


def set_current_caller(identity: str) -> None:
    """Bind a caller to this context"""
    _current_caller.set(identity)


@contextmanager
def caller_context(identity: str):
    """Context manager for temporarily acting as identity"""
    token = _current_caller.set(identity)
    try:
        yield
    finally:
        _current_caller.reset(token)


class ContextCallerIdentity(CallerIdentity):
    """Reads the caller from the current context, with an optional fallback"""

    def __init__(self, default: str = ""):
        self.default = default

    def current_caller(self) -> str:
        identity = get_current_caller()
        if identity is None:
            return self.default
        return identity
