"""credvault - credential management for application backends.

Stores user identity records, hashes and verifies passwords under
interchangeable algorithms, enforces password strength and expires
accounts whose contact details were never validated.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
