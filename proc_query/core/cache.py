"""Stored-procedure parameter cache.

Maps ``(connection identity, procedure name, include-return flag)`` to the
procedure's canonical parameter descriptors. Descriptors are discovered from
the database on first use, stored once, and handed out as fresh clones on
every read so callers can bind values without affecting each other.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Any

from proc_query.core.connection import Connection, ConnectionConfig, as_config
from proc_query.core.exceptions import InvalidArgumentError
from proc_query.core.params import Parameter, clone_parameters

logger = logging.getLogger(__name__)

_INCLUDE_RETURN_SUFFIX = ":include ReturnValue Parameter"

IdentitySource = ConnectionConfig | Connection | str


def _resolve_source(source: IdentitySource) -> tuple[ConnectionConfig, Any | None]:
    """Config and, for a Connection, the adapter it was opened with."""
    if isinstance(source, Connection):
        return source.config, source.adapter
    if source is None or source == "":
        raise InvalidArgumentError("connection_string")
    return as_config(source), None


def make_key(identity: str, command_text: str, include_return_value: bool = False) -> str:
    """Build the cache key for a procedure or command."""
    key = f"{identity}:{command_text}"
    if include_return_value:
        key += _INCLUDE_RETURN_SUFFIX
    return key


def discover_parameter_set(
    config: ConnectionConfig,
    procedure: str,
    include_return_value: bool = False,
    adapter: Any | None = None,
) -> list[Parameter]:
    """Query the database for a procedure's parameters.

    Uses a dedicated connection that is opened and closed here, never one
    a caller is holding. ``adapter`` overrides the one registered for the
    config's driver. Every returned descriptor's value is None.
    """
    if not procedure:
        raise InvalidArgumentError("procedure")
    with Connection(config, adapter=adapter) as connection:
        discovered = connection.adapter.derive_parameters(connection.raw, procedure)
    if not include_return_value:
        discovered = discovered[1:]
    for parameter in discovered:
        parameter.value = None
    logger.debug(
        "Discovered %d parameters for %s on %s", len(discovered), procedure, config.identity
    )
    return discovered


class ParameterCache:
    """Thread-safe, process-lifetime cache of procedure parameter sets.

    Entries are never evicted: the cache is bounded by the number of
    distinct procedures an application calls.
    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[Parameter, ...]] = {}
        self._lock = threading.Lock()
        self._discovery_locks: dict[str, threading.Lock] = {}

    def get_parameter_set(
        self,
        source: IdentitySource,
        procedure: str,
        include_return_value: bool = False,
    ) -> list[Parameter]:
        """Return clones of the parameters of *procedure*, discovering them if needed.

        Args:
            source: Connection string, ConnectionConfig or Connection that
                identifies the database. A Connection is only used for its
                configuration; discovery opens its own connection.
            procedure: Stored procedure name.
            include_return_value: Keep the return-value slot as the first
                descriptor.

        Raises:
            InvalidArgumentError: If the identity or procedure is empty.
            ProcedureNotFoundError: If the database knows no such procedure.
        """
        config, adapter = _resolve_source(source)
        if not procedure:
            raise InvalidArgumentError("procedure")
        key = make_key(config.identity, procedure, include_return_value)

        cached = self._get(key)
        if cached is None:
            # One discovery per key at a time; later arrivals find the entry
            with self._discovery_lock(key):
                cached = self._get(key)
                if cached is None:
                    discovered = discover_parameter_set(
                        config, procedure, include_return_value, adapter=adapter
                    )
                    cached = self._store_first(key, discovered)
        else:
            logger.debug("Parameter cache hit for %s", key)
        return clone_parameters(cached)

    def set_parameter_set(
        self,
        source: IdentitySource,
        command_text: str,
        parameters: Sequence[Parameter],
    ) -> None:
        """Store *parameters* for *command_text*, replacing any existing entry."""
        config, _ = _resolve_source(source)
        if not command_text:
            raise InvalidArgumentError("command_text")
        key = make_key(config.identity, command_text)
        entry = tuple(clone_parameters(parameters))
        with self._lock:
            self._entries[key] = entry

    def get_cached_parameter_set(
        self,
        source: IdentitySource,
        command_text: str,
    ) -> list[Parameter] | None:
        """Return clones of the entry stored for *command_text*, or None."""
        config, _ = _resolve_source(source)
        if not command_text:
            raise InvalidArgumentError("command_text")
        cached = self._get(make_key(config.identity, command_text))
        return clone_parameters(cached) if cached is not None else None

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
            self._discovery_locks.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _get(self, key: str) -> tuple[Parameter, ...] | None:
        with self._lock:
            return self._entries.get(key)

    def _store_first(self, key: str, parameters: Sequence[Parameter]) -> tuple[Parameter, ...]:
        """Insert unless another writer got there first; return the stored entry."""
        with self._lock:
            return self._entries.setdefault(key, tuple(parameters))

    def _discovery_lock(self, key: str) -> threading.Lock:
        with self._lock:
            return self._discovery_locks.setdefault(key, threading.Lock())


parameter_cache = ParameterCache()


def get_parameter_set(
    source: IdentitySource,
    procedure: str,
    include_return_value: bool = False,
) -> list[Parameter]:
    """Process-wide cache lookup; see ParameterCache.get_parameter_set."""
    return parameter_cache.get_parameter_set(source, procedure, include_return_value)


def set_parameter_set(
    source: IdentitySource,
    command_text: str,
    parameters: Sequence[Parameter],
) -> None:
    """Process-wide cache store; see ParameterCache.set_parameter_set."""
    parameter_cache.set_parameter_set(source, command_text, parameters)


def get_cached_parameter_set(
    source: IdentitySource,
    command_text: str,
) -> list[Parameter] | None:
    """Process-wide cache read; see ParameterCache.get_cached_parameter_set."""
    return parameter_cache.get_cached_parameter_set(source, command_text)
