import samples.valid as v
from samples.valid import Valid

from . import helpers
from .helpers import Helper


class UsesImports:
    helper: Helper
    other: helpers.Helper
    valid: Valid
    aliased: v.Valid
