from flask import Blueprint

calendar_bp = Blueprint("academic_calendar", __name__)

from . import routes  # noqa: E402,F401
