from .config import DbConfig
from .db.models import StatementKind, StatementResult
from .db.service import StatementService

__all__ = ["StatementService", "StatementResult", "StatementKind", "DbConfig"]
