"""
Middleware de clasificación de errores

Punto terminal por el que pasan las fallas no manejadas de cualquier ruta.
Traduce la etiqueta del error a un código HTTP y un mensaje, y nunca escribe
una segunda respuesta si la primera ya empezó a enviarse.
"""

import logging
from typing import Dict, Tuple

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from services.errores import ErrorKind, FamiliaError, ValidationFailure

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "A server error has occurred"

# Plantillas por etiqueta; {detail} es el mensaje del error.
# DUPLICATE_PHONE y MISSING_PARAMETER se resuelven en las rutas; si llegan
# aquí igual se responden como 400 con su propio mensaje.
ERROR_CLASSIFICATION: Dict[ErrorKind, Tuple[int, str]] = {
    ErrorKind.VALIDATION: (400, "Validation error: {detail}"),
    ErrorKind.CONVERSION: (400, "Conversion error: {detail}"),
    ErrorKind.NOT_FOUND: (404, "Requested resource not found"),
    ErrorKind.UNIQUENESS_VIOLATION: (409, "Conflict error: duplicate data"),
    ErrorKind.DUPLICATE_PHONE: (400, "{detail}"),
    ErrorKind.MISSING_PARAMETER: (400, "{detail}"),
    ErrorKind.UNCLASSIFIED: (500, SERVER_ERROR_MESSAGE),
}


def clasificar_error(exc: BaseException) -> Tuple[int, str]:
    """Devuelve (status_code, mensaje) para una falla"""
    if isinstance(exc, FamiliaError):
        status_code, template = ERROR_CLASSIFICATION[exc.kind]
        return status_code, template.format(detail=exc.message)
    return ERROR_CLASSIFICATION[ErrorKind.UNCLASSIFIED]


def error_response(exc: BaseException) -> JSONResponse:
    status_code, message = clasificar_error(exc)
    if status_code >= 500:
        logger.error(f"Error no clasificado: {exc!r}", exc_info=exc)
    else:
        logger.warning(f"{type(exc).__name__} -> {status_code}: {message}")
    return JSONResponse(status_code=status_code, content={"error": message})


def _format_validation_errors(exc: RequestValidationError) -> str:
    partes = []
    for error in exc.errors():
        loc = [str(p) for p in error.get("loc", ()) if p != "body"]
        campo = ".".join(loc)
        partes.append(f"{campo}: {error.get('msg')}" if campo else str(error.get("msg")))
    return "; ".join(partes)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Errores de forma del cuerpo o de parámetros -> 400 Validation error"""
    return error_response(ValidationFailure(_format_validation_errors(exc)))


class ErrorClassificationMiddleware:
    """
    Middleware ASGI que clasifica las excepciones no manejadas.

    Si la respuesta ya inició (http.response.start enviado) la excepción se
    propaga sin escribir nada más.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                logger.error(f"Error después de iniciar la respuesta, se propaga: {exc!r}")
                raise
            response = error_response(exc)
            await response(scope, receive, send)
