# salon_admin/routes/main.py

from flask import redirect, render_template, url_for
from flask_login import current_user


def register_main_routes(app):
    """Register landing page routes"""

    @app.route("/")
    def index():
        if not current_user.is_authenticated:
            return redirect(url_for("login"))
        return render_template("index.html")
