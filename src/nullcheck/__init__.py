"""nullcheck: verify that members reject None for non-nullable parameters."""

from nullcheck.defaults import DefaultValueRegistry, Function, Supplier, identity, supplier_of
from nullcheck.exceptions import (
    ConfigurationError,
    InvocationMarshalError,
    MissingDefaultError,
    NullArgumentError,
    NullCheckError,
    NullCheckFailure,
)
from nullcheck.invariants import Nullable, check_not_none, nullable
from nullcheck.reporting import CollectingReporter, Outcome, RaisingReporter
from nullcheck.tester import NullTester
from nullcheck.visibility import Visibility

__all__ = [
    "__version__",
    "CollectingReporter",
    "ConfigurationError",
    "DefaultValueRegistry",
    "Function",
    "InvocationMarshalError",
    "MissingDefaultError",
    "NullArgumentError",
    "NullCheckError",
    "NullCheckFailure",
    "NullTester",
    "Nullable",
    "Outcome",
    "RaisingReporter",
    "Supplier",
    "Visibility",
    "check_not_none",
    "identity",
    "nullable",
    "supplier_of",
]

__version__ = "0.1.0"
