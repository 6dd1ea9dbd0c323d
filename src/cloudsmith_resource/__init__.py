"""
Cloudsmith Resource - publish, fetch, and prune packages from CI pipelines.

Runs as a Concourse resource type (check/in/out) or as a GitHub Action,
backed by a Cloudsmith package repository.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
