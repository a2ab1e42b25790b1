# salon_admin/utils/permissions.py

from functools import wraps
from http import HTTPStatus

from flask import flash, jsonify, redirect, request, url_for
from flask_login import current_user


def _wants_json():
    best = request.accept_mimetypes.best_match(["application/json", "text/html"])
    return request.is_json or best == "application/json"


def admin_required(f):
    """Decorator to require an authenticated, active salon admin"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            if _wants_json():
                return jsonify({"error": "Authentication required."}), HTTPStatus.UNAUTHORIZED
            flash("Please log in to access this page.", "warning")
            return redirect(url_for("login", next=request.path))

        if not current_user.is_admin:
            if _wants_json():
                return jsonify({"error": "Admin privileges required."}), HTTPStatus.FORBIDDEN
            flash("Admin privileges required.", "danger")
            return redirect(url_for("index"))

        return f(*args, **kwargs)

    return decorated_function
