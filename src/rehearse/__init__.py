"""Rehearse: spaced-repetition review scheduling for practice problems."""

from rehearse.consts import VERSION

__version__ = VERSION
