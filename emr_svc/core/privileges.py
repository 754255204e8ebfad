"""
Scoped proxy privileges.

Some reads (the default location, its MFL code) must run with privileges
the calling user may not hold. Instead of toggling process-wide flags, a
caller opens a `proxy_privileges(...)` block: the privileges are visible to
code running inside the block (same thread / task) and are released on every
exit path, including exceptions.

Usage:
    from emr_svc.core.privileges import proxy_privileges, GET_LOCATIONS

    with proxy_privileges(GET_LOCATIONS):
        location = repo.get_by_id(location_id)
"""
import contextlib
import logging
from contextvars import ContextVar
from typing import FrozenSet, Iterator

logger = logging.getLogger(__name__)

GET_LOCATIONS = "Get Locations"
GET_GLOBAL_PROPERTIES = "Get Global Properties"
GET_LOCATION_ATTRIBUTE_TYPES = "Get Location Attribute Types"

_proxy_privileges: ContextVar[FrozenSet[str]] = ContextVar("proxy_privileges", default=frozenset())


def current_proxy_privileges() -> FrozenSet[str]:
    """Privileges granted by the enclosing proxy_privileges blocks."""
    return _proxy_privileges.get()


@contextlib.contextmanager
def proxy_privileges(*privileges: str) -> Iterator[FrozenSet[str]]:
    """
    Grant privileges for the duration of the block.

    Blocks nest: the inner block adds to the outer one, and leaving it
    restores exactly the outer set.
    """
    granted = _proxy_privileges.get() | frozenset(privileges)
    token = _proxy_privileges.set(granted)
    logger.debug("Proxy privileges granted", extra={"privileges": sorted(privileges)})
    try:
        yield granted
    finally:
        _proxy_privileges.reset(token)
