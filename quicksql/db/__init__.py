from .builders import build_delete, build_insert, build_select, build_update
from .models import Dialect, Statement, StatementKind, StatementResult
from .reporter import ErrorReporter
from .service import StatementService

__all__ = [
    "StatementService",
    "Statement",
    "StatementKind",
    "StatementResult",
    "Dialect",
    "ErrorReporter",
    "build_select",
    "build_insert",
    "build_update",
    "build_delete",
]
