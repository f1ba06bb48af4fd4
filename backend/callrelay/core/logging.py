"""Configuración de logging estructurado para el relay de llamadas."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5

# Atributos propios de LogRecord; todo lo demás proviene de `extra=`.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """Serializa cada registro como una línea JSON con los campos extra."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in record.__dict__.items() if key not in _RECORD_ATTRS
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _rotating_handler(file_path: str) -> RotatingFileHandler:
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
    )
    handler.setFormatter(JSONFormatter())
    return handler


def configure_logging(
    level: int = logging.INFO,
    *,
    log_file: str | None = None,
    per_logger_files: dict[str, str] | None = None,
) -> None:
    """Instala handlers JSON en stdout y, opcionalmente, en archivos rotativos."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(stream_handler)

    targets: list[tuple[logging.Logger, str]] = []
    if log_file:
        targets.append((root_logger, log_file))
    for logger_name, file_path in (per_logger_files or {}).items():
        targets.append((logging.getLogger(logger_name), file_path))

    for target, file_path in targets:
        try:
            target.addHandler(_rotating_handler(file_path))
        except OSError:
            root_logger.exception(
                "No fue posible iniciar el handler de archivo",
                extra={"target_logger": target.name, "file": file_path},
            )

    # uvicorn instala sus propios handlers; los unificamos con el formato JSON.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True


def resolve_log_level(value: str | int | None, *, default: int = logging.INFO) -> int:
    """Convierte valores configurables a constantes numéricas de logging."""
    if isinstance(value, int):
        return value
    if not isinstance(value, str) or not value.strip():
        return default
    candidate = value.strip()
    if candidate.isdigit():
        return int(candidate)
    mapped = logging.getLevelName(candidate.upper())
    return mapped if isinstance(mapped, int) else default


def get_logger(name: str) -> logging.Logger:
    """Retorna un logger hijo con el nombre solicitado."""
    return logging.getLogger(name)


def log_event(logger: logging.Logger, message: str, **extra: Any) -> None:
    """Helper para enviar eventos con campos adicionales en formato JSON."""
    if extra:
        logger.info(message, extra=extra)
    else:
        logger.info(message)
