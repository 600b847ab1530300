__version__ = "0.1.0"

from .containers import Lenient, Map, Optional, Pair, Result, Strict, Vec
from .context import Context, Contextual, ContextualForm
from .error import Entity, Error, ErrorKind, Errors
from .exceptions import FormError, ResolveError
from .field import Data, DataField, ValueField
from .form import (
    FormParser,
    create_form_parser,
    parse_body,
    parse_form,
    parse_form_encoded,
    parse_form_fields,
    values,
)
from .from_form import MISSING, FromForm, FromFormField, Options
from .name import Key, Name, NameBuf, NameView
from .resolve import form_for
from .struct import Struct, field

__all__ = (
    "MISSING",
    "Context",
    "Contextual",
    "ContextualForm",
    "Data",
    "DataField",
    "Entity",
    "Error",
    "ErrorKind",
    "Errors",
    "FormError",
    "FormParser",
    "FromForm",
    "FromFormField",
    "Key",
    "Lenient",
    "Map",
    "Name",
    "NameBuf",
    "NameView",
    "Optional",
    "Options",
    "Pair",
    "ResolveError",
    "Result",
    "Strict",
    "Struct",
    "Vec",
    "ValueField",
    "create_form_parser",
    "field",
    "form_for",
    "parse_body",
    "parse_form",
    "parse_form_encoded",
    "parse_form_fields",
    "values",
)
