"""Pollable HTTP interface over the build job core."""

from forgeline.api.app import create_app

__all__ = ["create_app"]
