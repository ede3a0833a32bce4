"""
StillFace - coded behavioral-observation storage

Persists imports, codes, tags and coded intervals in a relational store
and mirrors them in an in-memory cache for the coding application.
"""

__version__ = "1.0.0"
