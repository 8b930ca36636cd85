"""System routes for logs and diagnostics."""

import logging
from collections import deque
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..middleware import AuthContext, get_auth_context

router = APIRouter(tags=["system"])

# Global in-memory log buffer
LOG_BUFFER: deque = deque(maxlen=100)

_STANDARD_ATTRS = {
    "args", "asctime", "created", "exc_info", "exc_text", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs", "message", "msg", "name",
    "pathname", "process", "processName", "relativeCreated", "stack_info", "taskName",
    "thread", "threadName",
}


class LogEntry(BaseModel):
    timestamp: str
    level: str
    logger: str
    message: str
    extra: Dict[str, Any]


class MemoryLogHandler(logging.Handler):
    """Custom handler to capture logs into memory."""

    def emit(self, record):
        try:
            msg = self.format(record)
            extra = {
                k: v if isinstance(v, (str, int, float, bool, type(None))) else repr(v)
                for k, v in record.__dict__.items()
                if k not in _STANDARD_ATTRS
            }
            LOG_BUFFER.append(
                {
                    "timestamp": datetime.fromtimestamp(record.created).isoformat(),
                    "level": record.levelname,
                    "logger": record.name,
                    "message": msg,
                    "extra": extra,
                }
            )
        except Exception:
            self.handleError(record)


memory_handler = MemoryLogHandler()
memory_handler.setFormatter(logging.Formatter("%(message)s"))


def install_log_buffer(level: int = logging.INFO) -> None:
    """Attach the memory handler to the root logger (idempotent)."""
    root = logging.getLogger()
    if memory_handler not in root.handlers:
        root.addHandler(memory_handler)
    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)


@router.get("/api/system/logs", response_model=List[LogEntry])
async def get_logs(
    level: Optional[str] = Query(None, description="Only return entries of this level"),
    auth: AuthContext = Depends(get_auth_context),
):
    """Retrieve recent system logs."""
    entries = list(LOG_BUFFER)
    if level:
        entries = [entry for entry in entries if entry["level"] == level.upper()]
    return entries
