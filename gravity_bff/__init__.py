"""
Gravity BFF: unified priority stream backend.
"""

__version__ = "2.0.0"
