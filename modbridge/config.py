"""Runtime configuration for the bridge."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace

__all__ = ["BridgeConfig"]

logger = logging.getLogger(__name__)

_ENV_PREFIX = "MODBRIDGE_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class BridgeConfig:
    """
    Knobs shared by the resolver, the facade and the wrapper factory.

    include_private      — expose `_name` members (dunder names are never exposed)
    accessor_prefixes    — (getter, setter) prefixes mapped onto fields/properties,
                           e.g. "get_displayName" → displayName
    singleton_names      — static members probed by SafeInvoker.singleton()
    native_suffix        — stripped from host type names when auto-wrapping
    not_found_severity   — diagnostic severity for NOT_FOUND outcomes
    diagnostics_component — component name stamped on every diagnostic record
    """
    include_private:       bool = True
    accessor_prefixes:     tuple[str, str] = ("get_", "set_")
    singleton_names:       tuple[str, ...] = ("Instance", "instance", "Get")
    native_suffix:         str  = "Native"
    not_found_severity:    str  = "warning"
    diagnostics_component: str  = "bridge"

    @property
    def getter_prefix(self) -> str:
        return self.accessor_prefixes[0]

    @property
    def setter_prefix(self) -> str:
        return self.accessor_prefixes[1]

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "BridgeConfig":
        """
        Build a config from MODBRIDGE_* environment variables.

        Unknown or malformed values are logged and ignored so that a bad
        environment never prevents the bridge from starting.
        """
        env = os.environ if environ is None else environ
        config = cls()

        private = env.get(f"{_ENV_PREFIX}INCLUDE_PRIVATE")
        if private is not None:
            flag = private.strip().lower()
            if flag in _TRUE:
                config = replace(config, include_private=True)
            elif flag in _FALSE:
                config = replace(config, include_private=False)
            else:
                logger.warning("Ignoring %sINCLUDE_PRIVATE=%r", _ENV_PREFIX, private)

        prefixes = env.get(f"{_ENV_PREFIX}ACCESSOR_PREFIXES")
        if prefixes:
            parts = [p.strip() for p in prefixes.split(",")]
            if len(parts) == 2 and all(parts):
                config = replace(config, accessor_prefixes=(parts[0], parts[1]))
            else:
                logger.warning("Ignoring %sACCESSOR_PREFIXES=%r", _ENV_PREFIX, prefixes)

        singletons = env.get(f"{_ENV_PREFIX}SINGLETON_NAMES")
        if singletons:
            names = tuple(n.strip() for n in singletons.split(",") if n.strip())
            if names:
                config = replace(config, singleton_names=names)

        severity = env.get(f"{_ENV_PREFIX}NOT_FOUND_SEVERITY")
        if severity:
            if severity.lower() in ("debug", "info", "warning", "error"):
                config = replace(config, not_found_severity=severity.lower())
            else:
                logger.warning("Ignoring %sNOT_FOUND_SEVERITY=%r", _ENV_PREFIX, severity)

        suffix = env.get(f"{_ENV_PREFIX}NATIVE_SUFFIX")
        if suffix is not None:
            config = replace(config, native_suffix=suffix.strip())

        return config
