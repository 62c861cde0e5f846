"""Exception hierarchy for writeguard.

Expected write failures are not exceptions: they surface as a failed
:class:`~writeguard.services.result.ServiceResult`. These exceptions cover
setup mistakes and broken hooks.
"""

from __future__ import annotations


class WriteguardError(Exception):
    """Base class for all writeguard exceptions."""


class ConfigurationError(WriteguardError):
    """A type descriptor or rule registration is invalid.

    Raised eagerly while types are registered; the offending type never
    becomes usable.
    """


class HookContractViolation(ConfigurationError):
    """A hook or custom evaluator broke the synchronous, pure contract.

    Raised at registration for ``async def`` callables, and during a write
    when a callable returns an awaitable, returns a non-bool where a bool is
    required, or mutates the assignments after the pre-write stage.
    """
