"""lingosrs: SM-2 spaced-repetition scheduling for grammar and vocabulary cards."""

from lingosrs.consts import VERSION

__version__ = VERSION
