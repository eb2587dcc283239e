"""URL routing helpers shared by the apps."""
from __future__ import annotations

from django.urls import re_path
from rest_framework.routers import SimpleRouter

OPTIONAL_SLASH = "/?"


class OptionalSlashRouter(SimpleRouter):
    """Routes that match with or without the trailing slash.

    A slashless POST would otherwise be redirected by ``APPEND_SLASH`` and
    lose its body.
    """

    def __init__(self) -> None:
        super().__init__()
        self.trailing_slash = OPTIONAL_SLASH


def route(prefix: str, view, name: str):
    return re_path(rf"^{prefix}{OPTIONAL_SLASH}$", view, name=name)
