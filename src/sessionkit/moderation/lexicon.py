"""Bundled moderation lexicon for offline use.

Entries are stored ciphered with the default SubstitutionCipher key; encode new
plaintext entries with SubstitutionCipher().encode() before adding them here.
"""

BUNDLED_LEXICON: tuple[str, ...] = (
    "xmkngek",
    "ngelrngek",
)
