"""
Database exports.
"""

from .mongodb import mongodb, MongoDB

__all__ = ["mongodb", "MongoDB"]
