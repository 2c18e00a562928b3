"""
DreamSpend - Source Package

A daily "spend the money you don't have" game. Every day the player gets
an imaginary allowance that doubles with each new day, lists what they
would buy with it, and keeps a streak going.

DESIGN PRINCIPLES:
1. One engine owns the state; everything else goes through its operations
2. Validate before mutating; a rejected save changes nothing
3. Money is integer minor units; rates are Decimal
4. Storage is swappable and best-effort
5. Every committed change is an event
"""

__version__ = "1.0.0"
__author__ = "DreamSpend Team"
