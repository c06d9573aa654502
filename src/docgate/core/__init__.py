"""Core configuration, error types and cryptographic primitives."""
