"""API blueprint - the public JSON scan endpoint."""

from __future__ import annotations

from flask import Blueprint

bp: Blueprint = Blueprint("api", __name__)

from emailauth.api import routes  # noqa: E402, F401
