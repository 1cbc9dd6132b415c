"""Analyzers that find and explain problems in Kubernetes cluster resources."""

__version__ = "0.1.0"