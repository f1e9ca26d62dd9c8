"""
Astex Trading Platform
======================
Sign-up/KYC, UPI and hosted-order deposits, admin user and trade management.
"""

__version__ = "1.0.0"
