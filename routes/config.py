"""
Configuración de rutas para la API de Casa de Salud
"""

# Configuración de rutas
ROUTE_PREFIXES = {
    "families": "/api",
    "members": "/api",
    "health": ""
}

# Tags para documentación
ROUTE_TAGS = {
    "families": ["Familias"],
    "members": ["Integrantes"],
    "health": ["health"]
}

# Respuestas documentadas en OpenAPI
DEFAULT_RESPONSES = {
    400: {"description": "Solicitud inválida (validación, conversión o teléfono duplicado)"},
    404: {"description": "Recurso no encontrado"},
    409: {"description": "Conflicto - teléfono duplicado detectado por la base de datos"},
    500: {"description": "Error interno del servidor"}
}
