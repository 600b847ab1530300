from __future__ import annotations


class FormError(ValueError):
    """Base error class for our form parser."""


class ResolveError(FormError, TypeError):
    """This exception is raised when a Python type has no form parser, for
    example an annotation such as ``set[int]`` or a class that is neither a
    dataclass nor a known scalar.
    """
