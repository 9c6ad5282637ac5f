"""
salonslots - appointment availability and booking core for a salon.
"""

__version__ = "0.1.0"
