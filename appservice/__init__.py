"""Devfile models, GitOps manifest generation and repository helpers for application components."""

__version__ = "0.1.0"