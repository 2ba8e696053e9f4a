from flask import Blueprint

# url_prefix is set in app.register_blueprint(..., url_prefix="/api/v1")
api_bp = Blueprint("term_api", __name__)

from . import routes  # noqa: E402,F401
