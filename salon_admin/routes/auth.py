# salon_admin/routes/auth.py

from urllib.parse import urlsplit

from flask import current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required, login_user, logout_user

from salon_admin.forms import LoginForm
from salon_admin.models import AdminLog, User


def _safe_next_url(target):
    """Only follow same-site relative redirects after login"""
    if not target:
        return None
    parts = urlsplit(target)
    if parts.scheme or parts.netloc or not target.startswith("/"):
        return None
    return target


def register_auth_routes(app):
    """Register authentication routes"""

    @app.route("/login", methods=["GET", "POST"])
    def login():
        if current_user.is_authenticated:
            return redirect(url_for("index"))

        form = LoginForm()
        if form.validate_on_submit():
            user = User.find_by_username(form.username.data)
            if user is None or not user.check_password(form.password.data):
                current_app.logger.warning(
                    "Failed login attempt",
                    extra={"username": form.username.data, "ip_address": request.remote_addr},
                )
                flash("Invalid username or password.", "danger")
                return render_template("auth/login.html", form=form), 401

            if not user.is_active:
                flash("Your account has been deactivated.", "danger")
                return render_template("auth/login.html", form=form), 403

            login_user(user, remember=form.remember_me.data)
            user.update_last_login()
            if user.is_admin:
                AdminLog.log_action(
                    admin_user_id=user.id,
                    action="LOGIN",
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
            current_app.logger.info("User logged in", extra={"user_id": user.id})
            return redirect(_safe_next_url(request.args.get("next")) or url_for("index"))

        return render_template("auth/login.html", form=form)

    @app.route("/logout")
    @login_required
    def logout():
        from salon_admin.importer import IMPORTER_EXTENSION_KEY

        # Drop any half-finished wizard so its upload does not linger
        store = current_app.extensions.get(IMPORTER_EXTENSION_KEY, {}).get("store")
        if store is not None:
            store.discard(current_user.id)
        current_app.logger.info("User logged out", extra={"user_id": current_user.id})
        logout_user()
        flash("You have been logged out.", "info")
        return redirect(url_for("login"))
