"""Provision Azure Spring Apps services, apps and deployments with a get-or-create idiom."""

__version__ = "0.1.0"
