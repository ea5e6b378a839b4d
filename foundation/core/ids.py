"""
Reversible obfuscation of integer IDs.

An ID is scrambled with a multiplicative inverse pair modulo ``2**31`` and an
XOR mask, then written out in the base given by the alphabet. The same four
parameters must be used to decode, so they belong in the configuration and
must never change once IDs have been published.
"""

from typing import Optional

from foundation.config import Settings
from foundation.core.exceptions import ConfigurationMissingError

MAX_INT = 2**31 - 1


class IdCodec:
    """Encodes and decodes IDs for use in public URLs"""

    def __init__(self, alphabet: str, prime: int, inverse: int, random: int):
        if len(alphabet) < 2 or len(set(alphabet)) != len(alphabet):
            raise ConfigurationMissingError(
                message="ID alphabet must consist of at least two unique characters",
                parameter="SECURITY_IDS_ALPHABET",
            )
        if (prime * inverse) & MAX_INT != 1:
            raise ConfigurationMissingError(
                message="ID prime and inverse are not multiplicative inverses modulo 2^31",
                parameter="SECURITY_IDS_INVERSE",
            )

        self.alphabet = alphabet
        self.prime = prime
        self.inverse = inverse
        self.random = random & MAX_INT
        self._positions = {char: index for index, char in enumerate(alphabet)}

    def encode(self, value: int) -> str:
        if value < 0 or value > MAX_INT:
            raise ValueError(f"ID out of range: {value}")

        number = ((value * self.prime) & MAX_INT) ^ self.random
        base = len(self.alphabet)

        digits = []
        while True:
            number, remainder = divmod(number, base)
            digits.append(self.alphabet[remainder])
            if number == 0:
                break
        return "".join(reversed(digits))

    def decode(self, text: str) -> Optional[int]:
        """Return the original ID, or ``None`` if ``text`` is not a valid encoding"""
        if not text:
            return None

        base = len(self.alphabet)
        number = 0
        for char in text:
            position = self._positions.get(char)
            if position is None:
                return None
            number = number * base + position

        if number > MAX_INT:
            return None

        value = ((number ^ self.random) * self.inverse) & MAX_INT
        # Only the canonical spelling is valid; leading zero digits are not
        if self.encode(value) != text:
            return None
        return value


def build_ids(settings: Settings) -> IdCodec:
    """
    Create the codec from the ``SECURITY_IDS_*`` settings

    Raises:
        ConfigurationMissingError: If any of the four parameters is missing
    """
    parameters = {
        "SECURITY_IDS_ALPHABET": settings.SECURITY_IDS_ALPHABET,
        "SECURITY_IDS_PRIME": settings.SECURITY_IDS_PRIME,
        "SECURITY_IDS_INVERSE": settings.SECURITY_IDS_INVERSE,
        "SECURITY_IDS_RANDOM": settings.SECURITY_IDS_RANDOM,
    }
    missing = [name for name, value in parameters.items() if value is None or value == ""]
    if missing:
        raise ConfigurationMissingError(
            message=f"ID obfuscation is not configured: missing {', '.join(missing)}",
            parameter=missing[0],
        )

    return IdCodec(
        alphabet=settings.SECURITY_IDS_ALPHABET,
        prime=settings.SECURITY_IDS_PRIME,
        inverse=settings.SECURITY_IDS_INVERSE,
        random=settings.SECURITY_IDS_RANDOM,
    )
