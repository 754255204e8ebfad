"""
Base character sets: the ordered alphabets identifiers are written in.

A character's position in the set is its digit value, so "0123456789" is
plain base 10 and the 30-character LuhnMod30 alphabet is base 30.
"""
from typing import Dict, List, Union

from emr_svc.core.exceptions import ConfigError, InvalidIdentifierError


class BaseCharacterSet:
    """
    Ordered sequence of distinct characters.

    Raises:
        ConfigError: If the characters are empty or contain duplicates.
    """

    __slots__ = ("characters", "_digits")

    def __init__(self, characters: str):
        if not characters:
            raise ConfigError("Base character set must not be empty")

        digits: Dict[str, int] = {}
        duplicates: List[str] = []
        for position, ch in enumerate(characters):
            if ch in digits:
                duplicates.append(ch)
            else:
                digits[ch] = position
        if duplicates:
            raise ConfigError(
                f"Base character set '{characters}' repeats {''.join(sorted(set(duplicates)))!r}",
                base_character_set=characters,
            )

        self.characters = characters
        self._digits = digits

    @property
    def radix(self) -> int:
        return len(self.characters)

    @property
    def zero(self) -> str:
        """The character with digit value 0."""
        return self.characters[0]

    def digit(self, ch: str) -> int:
        """Digit value of one character. Raises KeyError outside the set."""
        return self._digits[ch]

    def digits(self, text: str) -> List[int]:
        """
        Digit values of every character in text.

        Raises:
            InvalidIdentifierError: If text has a character outside the set.
        """
        try:
            return [self._digits[ch] for ch in text]
        except KeyError as exc:
            raise InvalidIdentifierError(
                identifier=text,
                reason=f"character {exc.args[0]!r} is not in base '{self.characters}'",
            ) from exc

    def character(self, digit: int) -> str:
        return self.characters[digit]

    def contains(self, text: str) -> bool:
        return all(ch in self._digits for ch in text)

    def __len__(self) -> int:
        return len(self.characters)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BaseCharacterSet):
            return self.characters == other.characters
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.characters)

    def __str__(self) -> str:
        return self.characters

    def __repr__(self) -> str:
        return f"BaseCharacterSet({self.characters!r})"


def as_base(base: Union[str, BaseCharacterSet]) -> BaseCharacterSet:
    """Accept either a BaseCharacterSet or its characters."""
    if isinstance(base, BaseCharacterSet):
        return base
    return BaseCharacterSet(base)
