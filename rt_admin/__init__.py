"""
RT Admin - Source Package

Administration tool for a neighborhood association (RT): resident and
household records, monthly RT/PKK dues, other income and expenses, and the
reports built on top of them.

DESIGN PRINCIPLES:
1. Every computation is recomputed from the in-memory collections
2. Every mutation is validated first, then written through to storage
3. No silent substitutions (fallbacks are logged)
4. Failures degrade to a message, never to a crash
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "RT Admin Team"
