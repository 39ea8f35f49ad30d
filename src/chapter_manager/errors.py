"""Exceptions raised by the chapter tools.

All of them are ``click.ClickException`` subclasses so the command line
reports them as a one-line error instead of a traceback.
"""

from __future__ import annotations

import click


class ChapterError(click.ClickException):
    """Base class for chapter handling failures."""


class MissingInputError(ChapterError):
    """No chapters were given, or a chapter lacks a required field."""


class TagWriteError(ChapterError):
    """The tag library refused to write the tag to the output file."""


class ChapterFormatError(ChapterError):
    """A chapter JSON file does not hold a list of chapters."""
