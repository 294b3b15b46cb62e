"""Name -> class table for confirmation policies.

Policies register themselves at import time with ``@register_policy``; the
engine builds one instance per key from the pair's PolicyConfig.
"""

from __future__ import annotations

import logging

from core.models.config import PolicyConfig

logger = logging.getLogger(__name__)

_POLICIES: dict[str, type] = {}


def register_policy(name: str):
    """Class decorator adding a policy under ``name``; names are unique."""

    def decorator(cls):
        existing = _POLICIES.get(name)
        if existing is not None and existing is not cls:
            raise ValueError(f"Policy '{name}' is already taken by {existing.__name__}")
        _POLICIES[name] = cls
        logger.debug("Policy %s -> %s", name, cls.__name__)
        return cls

    return decorator


def create_policy(config: PolicyConfig):
    """Instantiate the policy named by ``config.name``.

    Raises:
        KeyError: If no policy is registered under that name.
    """
    try:
        cls = _POLICIES[config.name]
    except KeyError:
        known = ", ".join(sorted(_POLICIES)) or "(none)"
        raise KeyError(f"Unknown policy '{config.name}', known: {known}") from None
    return cls(config)
