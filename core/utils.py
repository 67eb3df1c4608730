"""Utility functions for parola application."""

import unicodedata


def fold_letter(char: str) -> str:
    """Lowercase a character and strip its accent ('À' -> 'a')."""
    decomposed = unicodedata.normalize('NFD', char.lower())
    return ''.join(c for c in decomposed if not unicodedata.combining(c))


def word_letters(text: str) -> set[str]:
    """Letters that must be revealed to complete a word.

    Separators and punctuation (spaces, hyphens, apostrophes) are not
    letters and never need revealing.
    """
    letters = set()
    for char in text:
        if char.isalpha():
            letters.update(fold_letter(char))
    return letters


def normalize_text(text: str) -> str:
    """Normalize text for cache keys."""
    return ' '.join(text.lower().split())
