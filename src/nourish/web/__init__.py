"""Nourish Web - HTTP surface for the assistant."""

from nourish.web.app import app

__all__ = ["app"]
