"""Reconciliation core: reconciler, lister and diagnostics."""

from .diagnostics import Diagnostic, DiagnosticKind, Diagnostics
from .lister import Lister, ListResult
from .reconciler import FailurePolicy, PassResult, Reconciler

__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "Diagnostics",
    "FailurePolicy",
    "Lister",
    "ListResult",
    "PassResult",
    "Reconciler",
]
