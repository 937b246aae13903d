"""
Investment Calculation Engine

Calculators behind the project analyzers: the BRRRR projection, the
fix-and-flip profitability math and the money helpers they share.
"""

from app.calculations import money, brrrr, flip

__all__ = ["money", "brrrr", "flip"]
