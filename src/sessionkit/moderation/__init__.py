"""Restricted-text matching over a ciphered lexicon."""

from src.sessionkit.moderation.cipher import DEFAULT_CIPHER_KEY, SubstitutionCipher
from src.sessionkit.moderation.content_filter import ContentFilter

__all__ = [
    "ContentFilter",
    "SubstitutionCipher",
    "DEFAULT_CIPHER_KEY",
]
