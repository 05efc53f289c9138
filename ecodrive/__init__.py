"""
EcoDrive - Source Package

A household fuel-expense tracker: register drivers, record trips,
and see where the fuel money goes.

DESIGN PRINCIPLES:
1. Trip costs are snapshots - computed once, never recomputed
2. Compute first, persist second
3. The AI estimates distances, it never writes data
4. Read failures fall back to defaults, write failures are loud
5. Storage medium is swappable
"""

__version__ = "1.0.0"
__author__ = "EcoDrive Team"
