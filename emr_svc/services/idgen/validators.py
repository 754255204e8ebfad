"""
Luhn mod N check characters over an arbitrary base character set.

The classic Luhn algorithm generalised to any alphabet: walking the payload
from the right, every other digit is doubled, each product is folded back
into the base (quotient + remainder), and the check character is whatever
brings the total to a multiple of N.

Validators are referenced by name from identifier types, either by short
class name ("LuhnMod30IdentifierValidator") or by a dotted name ending in
it ("org.openmrs.module.idgen.validator.LuhnMod30IdentifierValidator").
"""
import logging
from typing import Dict, Optional, Type, Union

from emr_svc.core.exceptions import ConfigError
from emr_svc.services.idgen.charset import BaseCharacterSet, as_base

logger = logging.getLogger(__name__)


def _weighted_sum(base: BaseCharacterSet, text: str, factor: int) -> int:
    n = base.radix
    total = 0
    for digit in reversed(base.digits(text)):
        addend = factor * digit
        factor = 1 if factor == 2 else 2
        total += addend // n + addend % n
    return total


def checksum(base: Union[str, BaseCharacterSet], payload: str) -> str:
    """
    Compute the check character for payload.

    Raises:
        InvalidIdentifierError: If payload has characters outside base.
    """
    base = as_base(base)
    remainder = _weighted_sum(base, payload, factor=2) % base.radix
    return base.character((base.radix - remainder) % base.radix)


def is_valid(base: Union[str, BaseCharacterSet], identifier: str) -> bool:
    """
    Check an identifier whose last character is its check character.

    Identifiers that are empty or contain characters outside base are
    invalid rather than an error.
    """
    base = as_base(base)
    if not identifier or not base.contains(identifier):
        return False
    return _weighted_sum(base, identifier, factor=1) % base.radix == 0


class LuhnModNIdentifierValidator:
    """Luhn mod N validator bound to one base character set."""

    base_characters: str = ""

    def __init__(self):
        self.base = BaseCharacterSet(self.base_characters)

    @property
    def name(self) -> str:
        return type(self).__name__

    def compute_check_digit(self, payload: str) -> str:
        return checksum(self.base, payload)

    def get_valid_identifier(self, payload: str) -> str:
        """payload followed by its check character."""
        return payload + self.compute_check_digit(payload)

    def is_valid(self, identifier: str) -> bool:
        return is_valid(self.base, identifier)


class LuhnMod10IdentifierValidator(LuhnModNIdentifierValidator):
    base_characters = "0123456789"


class LuhnMod30IdentifierValidator(LuhnModNIdentifierValidator):
    # No B, I, O, Q, S or Z: easily confused with digits
    base_characters = "0123456789ACDEFGHJKLMNPRTUVWXY"


VALIDATORS: Dict[str, Type[LuhnModNIdentifierValidator]] = {
    cls.__name__: cls
    for cls in (LuhnMod10IdentifierValidator, LuhnMod30IdentifierValidator)
}

_instances: Dict[str, LuhnModNIdentifierValidator] = {}


def get_validator(name: Optional[str]) -> Optional[LuhnModNIdentifierValidator]:
    """
    Look up a validator by name.

    Returns:
        The validator, or None when name is empty.

    Raises:
        ConfigError: If no validator is registered under the name.
    """
    if not name:
        return None

    short_name = name.rsplit(".", 1)[-1]
    validator = _instances.get(short_name)
    if validator is None:
        validator_class = VALIDATORS.get(short_name)
        if validator_class is None:
            logger.warning("Unknown identifier validator", extra={"validator": name})
            raise ConfigError(f"Unexpected identifier validator '{name}'", validator=name)
        validator = _instances.setdefault(short_name, validator_class())
    return validator
