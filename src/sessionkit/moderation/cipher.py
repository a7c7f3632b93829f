"""Fixed substitution cipher used to keep the moderation lexicon out of plaintext."""

import string

from src.sessionkit.config import DEFAULT_CIPHER_KEY


class SubstitutionCipher:
    """
    Lowercase 26-letter substitution cipher.

    Only [a-z] is substituted; every other character passes through unchanged.
    This is an obfuscation courtesy, not a security boundary.

    Example:
        >>> cipher = SubstitutionCipher()
        >>> cipher.encode("Bad-Word 1")
        'xmk-ngek 1'
    """

    def __init__(self, key: str = DEFAULT_CIPHER_KEY):
        """
        Initialize cipher.

        Args:
            key: Image of "abcdefghijklmnopqrstuvwxyz" under the permutation

        Raises:
            ValueError: If key is not a permutation of the lowercase alphabet
        """
        if len(key) != 26 or set(key) != set(string.ascii_lowercase):
            raise ValueError("Cipher key must be a permutation of the 26 lowercase letters")

        self.key = key
        self._table = str.maketrans(string.ascii_lowercase, key)
        self._inverse = str.maketrans(key, string.ascii_lowercase)

    @property
    def is_self_inverse(self) -> bool:
        return self.key.translate(self._table) == string.ascii_lowercase

    def encode(self, text: str) -> str:
        """Lowercase then substitute."""
        return text.lower().translate(self._table)

    def decode(self, text: str) -> str:
        return text.lower().translate(self._inverse)
