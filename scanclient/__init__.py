"""
scanclient - network core of the scanner mobile client.

Resilient HTTP transport, error classification and the registration
protocol that keeps the identity provider and the backend profile store
consistent.
"""

__version__ = "0.1.0"
