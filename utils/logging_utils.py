import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Optional


_familia_id_var: ContextVar[Optional[str]] = ContextVar("familia_id", default=None)
_operacion_var: ContextVar[Optional[str]] = ContextVar("operacion", default=None)

LOG_FILE_NAME = "casa_salud.log"


class ContextFilter(logging.Filter):
    """Inyecta la familia y la operación en curso en cada registro de log."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.familia_id = _familia_id_var.get()
        record.operacion = _operacion_var.get()
        return True


def configure_logging() -> None:
    """
    Configura logging global con contexto por familia/operación.

    LOG_LEVEL define el nivel (INFO por defecto) y LOG_DIR el directorio del
    archivo rotativo; LOG_DIR vacío deja solo la salida por consola.
    """
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] [familia=%(familia_id)s] [op=%(operacion)s] "
        "%(name)s - %(message)s"
    )

    context_filter = ContextFilter()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(context_filter)
    handlers = [console_handler]

    log_dir = os.getenv("LOG_DIR", "logs").strip()
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE_NAME),
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(context_filter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers)


@contextmanager
def familia_logging_context(
    familia_id: Optional[str] = None,
    operacion: Optional[str] = None,
):
    """
    Context manager para asociar logs con una familia y una operación.
    """
    tokens = []
    if familia_id is not None:
        tokens.append((_familia_id_var, _familia_id_var.set(str(familia_id))))
    if operacion is not None:
        tokens.append((_operacion_var, _operacion_var.set(operacion)))

    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
