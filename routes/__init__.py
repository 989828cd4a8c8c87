"""
Rutas HTTP de la API de Casa de Salud
"""
