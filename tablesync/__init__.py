"""
Motor de sincronizacion de registros entre dos tablas remotas.

Modos:
- One-way: reconcilia snapshots completos de source y target por key field.
- Bidireccional: aplica eventos de cambio de ambos lados desde un `since`.
"""

__version__ = "1.0.0"
