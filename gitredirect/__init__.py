"""Admission webhook that routes Argo CD Application sources through the internal git server."""

__version__ = "0.1.0"
