from flask import Blueprint

bp = Blueprint("core", __name__)
api_bp = Blueprint("core_api", __name__)
# import routes so their handlers register on the blueprints
from . import routes  # noqa: E402,F401
