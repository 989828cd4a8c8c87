"""
Acceso a MongoDB y repositorios de familias
"""
