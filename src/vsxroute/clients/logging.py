"""Logging client wrapper (source of truth).

Rebuild behaviour exactly as described; no hidden defaults beyond this text.

Responsibilities
----------------
- Wrap each ``search``/``query`` call of a ``RegistryClient`` and emit
  configurable messages:
  * ``before`` (default True): ``"{name} {operation} start"``
  * ``after`` (default True): ``"{name} {operation} end (<ms> ms)"`` with
    elapsed time in milliseconds and ``{elapsed:.2f}`` formatting.
- Sinks:
  * when ``print`` is true → always ``print(message)``;
  * else when ``log`` is true → ``logger.info(message)`` if the logger reports
    handlers via ``hasHandlers()``, otherwise ``print(message)`` to avoid drops;
  * else → no output.
- ``enabled`` gates the wrapper entirely (default True).
- Use a provided ``logging.Logger`` (default ``logging.getLogger("vsxroute")``).

Configuration
-------------
- ``LoggingClient(client, name=None, logger=None, flags=None, **cfg)``.
  ``name`` defaults to the wrapped client's class name. Accepted keys:
  ``enabled``, ``before``, ``after``, ``log``, ``print``; unknown keys raise
  ``TypeError``. ``flags`` strings (``"before:off,after:on"``) are parsed into
  booleans; a bare name means on.
- ``configure(flags=None, **cfg)`` updates the same options at runtime.
- Effective options are ``SmartOptions`` over the defaults above.

Behaviour
---------
Exceptions propagate; the end message is skipped when the call raises.
``logged_provider(provider, **cfg)`` wraps every client the provider returns,
naming each after its registry URI; an existing ``LoggingClient`` is returned
unchanged.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from smartseeds import SmartOptions
from smartseeds.typeutils import safe_is_instance

from vsxroute.core.client import ClientProvider, RegistryClient, resolve_client
from vsxroute.core.models import QueryOptions, QueryResult, SearchOptions, SearchResult

__all__ = ["LoggingClient", "logged_provider"]

_DEFAULTS = {"enabled": True, "before": True, "after": True, "log": True, "print": False}


class LoggingClient(RegistryClient):
    """Registry client wrapper logging calls with timing."""

    def __init__(
        self,
        client: RegistryClient,
        *,
        name: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        flags: Optional[str] = None,
        **cfg: Any,
    ):
        self.client = client
        self.name = name or type(client).__name__
        self._logger = logger or logging.getLogger("vsxroute")
        self._config: Dict[str, bool] = {}
        self.configure(flags=flags, **cfg)

    def configure(self, flags: Optional[str] = None, **cfg: Any) -> None:
        unknown = set(cfg) - set(_DEFAULTS)
        if unknown:
            raise TypeError(f"Unknown logging options: {', '.join(sorted(unknown))}")
        if flags:
            cfg.update(self._parse_flags(flags))
        self._config.update({key: bool(value) for key, value in cfg.items()})

    def configuration(self) -> Dict[str, bool]:
        opts = SmartOptions(self._config, defaults=_DEFAULTS)
        return {key: bool(getattr(opts, key, _DEFAULTS[key])) for key in _DEFAULTS}

    async def search(self, options: Optional[SearchOptions] = None) -> SearchResult:
        return await self._logged("search", self.client.search, options)

    async def query(self, options: Optional[QueryOptions] = None) -> QueryResult:
        return await self._logged("query", self.client.query, options)

    async def _logged(self, operation: str, call_next, options):
        cfg = self.configuration()
        if not cfg["enabled"]:
            return await call_next(options)
        if cfg["before"]:
            self._emit(f"{self.name} {operation} start", cfg=cfg)
        t0 = time.perf_counter()
        result = await call_next(options)
        elapsed = (time.perf_counter() - t0) * 1000
        if cfg["after"]:
            self._emit(f"{self.name} {operation} end ({elapsed:.2f} ms)", cfg=cfg)
        return result

    def _emit(self, message: str, *, cfg: Dict[str, bool]) -> None:
        if cfg.get("print"):
            print(message)
            return
        if cfg.get("log"):
            logger = self._logger
            has_handlers = getattr(logger, "hasHandlers", None) or getattr(
                logger, "has_handlers", None
            )
            can_log = callable(has_handlers) and has_handlers()
            if can_log:
                logger.info(message)
            else:
                print(message)

    @staticmethod
    def _parse_flags(flags: str) -> Dict[str, bool]:
        mapping: Dict[str, bool] = {}
        for chunk in flags.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            if ":" in chunk:
                name, value = chunk.split(":", 1)
                mapping[name.strip()] = value.strip().lower() != "off"
            else:
                mapping[chunk] = True
        return mapping


def logged_provider(provider: ClientProvider, **cfg: Any) -> ClientProvider:
    """Wrap ``provider`` so every client it returns logs its calls."""

    async def provide(uri: str) -> RegistryClient:
        client = await resolve_client(provider, uri)
        if safe_is_instance(client, "vsxroute.clients.logging.LoggingClient"):
            return client
        return LoggingClient(client, name=uri, **cfg)

    return provide
