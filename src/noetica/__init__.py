"""Noetica: spaced-repetition scheduling engine for flashcard decks."""

from noetica.consts import VERSION

__version__ = VERSION
