"""
renewalslots - reconcile a customer's daily time slots against their package.
"""

__version__ = "0.1.0"
