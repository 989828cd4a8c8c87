"""
Servicios de validación y persistencia de familias
"""
