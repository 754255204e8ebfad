"""
Sequential identifier generator.

A source's sequence cursor is an integer. It is seeded from the decoded
first identifier base and rendered as:

    prefix + encode(value, base, width=len(first_identifier_base)) [+ check]

with the check character computed over prefix + encoded value when the
identifier type names a validator. max_length bounds that whole
identifier.

Taking the next value is serialized twice: a per-source threading.Lock in
this process, and the store's own atomic reserve (an IMMEDIATE SQLite
transaction) across processes. Sources of different identifier types never
share a lock.
"""
import logging
import threading
from typing import Dict, Optional, Protocol, Union

from emr_svc.models.identifier import IdentifierSourceConfig
from emr_svc.services.idgen.charset import BaseCharacterSet, as_base
from emr_svc.services.idgen.validators import LuhnModNIdentifierValidator, get_validator

logger = logging.getLogger(__name__)


def encode(value: int, base: Union[str, BaseCharacterSet], width: int = 1) -> str:
    """Write a non-negative integer in base, left-padded with the zero character."""
    base = as_base(base)
    if value < 0:
        raise ValueError("Sequence values are non-negative")

    characters = []
    while True:
        value, digit = divmod(value, base.radix)
        characters.append(base.character(digit))
        if value == 0:
            break
    encoded = "".join(reversed(characters))
    return encoded.rjust(width, base.zero)


def decode(text: str, base: Union[str, BaseCharacterSet]) -> int:
    """
    Read text written in base as an integer.

    Raises:
        InvalidIdentifierError: If text has characters outside base.
    """
    base = as_base(base)
    value = 0
    for digit in base.digits(text):
        value = value * base.radix + digit
    return value


def sequence_limit(base: Union[str, BaseCharacterSet], max_length: Optional[int]) -> Optional[int]:
    """
    Largest value that encodes in max_length characters, or None for unbounded.

    With no room at all the limit is -1, so no value can be issued.
    """
    if max_length is None:
        return None
    if max_length < 1:
        return -1
    return as_base(base).radix ** max_length - 1


def sequence_max_length(
    source: IdentifierSourceConfig,
    validator: Optional[LuhnModNIdentifierValidator] = None,
) -> Optional[int]:
    """
    Characters left for the sequence once the prefix and check character
    are counted against the source's max_length.
    """
    if source.max_length is None:
        return None
    overhead = len(source.prefix or "") + (1 if validator is not None else 0)
    return max(source.max_length - overhead, 0)


class SequenceStore(Protocol):
    """Durable home of the sequence cursors."""

    def reserve_sequence_value(self, source_id: int, limit: Optional[int] = None) -> int:
        ...


class SequentialIdentifierGenerator:
    """
    Hands out the next identifier of a source.

    One instance is shared per process (see
    emr_svc.core.dependencies.get_identifier_generator) so that its
    per-source locks cover every request thread.
    """

    def __init__(self, store: SequenceStore):
        self._store = store
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, source_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(source_id)
            if lock is None:
                lock = self._locks[source_id] = threading.Lock()
            return lock

    def render(
        self,
        source: IdentifierSourceConfig,
        value: int,
        validator: Optional[LuhnModNIdentifierValidator] = None,
    ) -> str:
        """Format a sequence value as the source's identifier."""
        encoded = encode(value, source.base_character_set, width=len(source.first_identifier_base))
        identifier = (source.prefix or "") + encoded
        if validator is not None:
            identifier = validator.get_valid_identifier(identifier)
        return identifier

    def mint_next(self, source: IdentifierSourceConfig) -> str:
        """
        Take the next identifier of a source.

        Raises:
            CapacityError: If the next identifier would be longer than max_length,
                prefix and check character included.
            ConfigError: If the identifier type names an unknown validator.
        """
        validator = get_validator(source.validator)
        limit = sequence_limit(source.base_character_set, sequence_max_length(source, validator))

        with self._lock_for(source.id):
            value = self._store.reserve_sequence_value(source.id, limit=limit)

        identifier = self.render(source, value, validator)
        logger.debug(
            "Sequence value reserved",
            extra={"source_id": source.id, "sequence_value": value, "identifier": identifier}
        )
        return identifier
