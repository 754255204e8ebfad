"""
Identifier generation: base character sets, check characters and sequences.
"""
from emr_svc.services.idgen.charset import BaseCharacterSet
from emr_svc.services.idgen.generator import SequentialIdentifierGenerator, decode, encode
from emr_svc.services.idgen.validators import (
    LuhnMod10IdentifierValidator,
    LuhnMod30IdentifierValidator,
    LuhnModNIdentifierValidator,
    checksum,
    get_validator,
    is_valid,
)

__all__ = [
    "BaseCharacterSet",
    "SequentialIdentifierGenerator",
    "decode",
    "encode",
    "LuhnMod10IdentifierValidator",
    "LuhnMod30IdentifierValidator",
    "LuhnModNIdentifierValidator",
    "checksum",
    "get_validator",
    "is_valid",
]
