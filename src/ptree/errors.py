"""Exceptions raised by ptree."""


class PtreeError(Exception):
    """Base class for ptree errors."""


class DirectoryError(PtreeError):
    """The process directory could not be enumerated."""
