"""DocGate: wallet-signature and allow-list gate for encrypted documentation."""

__version__ = "0.1.0"
