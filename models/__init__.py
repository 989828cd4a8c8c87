"""
Modelos de familias e integrantes
"""
