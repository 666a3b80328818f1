"""
Bitácora: auditoría y borrado controlado de reportes de maquinaria vial.
"""

__version__ = "0.1.0"
