"""
Consent connector application package.

User management with consent-manager synchronization, built on the
generic common/ library.
"""
