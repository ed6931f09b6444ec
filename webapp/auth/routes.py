from flask import (
    render_template,
    request,
    redirect,
    url_for,
    flash,
    session,
    current_app,
)
from urllib.parse import urlsplit
from flask_login import login_user, logout_user, current_user

from domain.wiki.exceptions import WikiStoreError, WikiValidationError
from . import bp
from ..extensions import LoginUser, get_services

FILL_ALL_FIELDS_MESSAGE = "Please fill all fields"


def _is_blank(*values) -> bool:
    return any(not (value or "").strip() for value in values)


def _safe_next_url(target):
    """同一オリジン内の相対パスだけをリダイレクト先として許可する"""
    if not target:
        return None
    parts = urlsplit(target)
    if parts.scheme or parts.netloc or not target.startswith("/") or target.startswith("//"):
        return None
    return target


@bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "GET":
        if current_user.is_authenticated:
            return redirect(url_for("wiki.index"))
        return render_template("auth/login.html", next_url=request.args.get("next", ""))

    username = request.form.get("username", "")
    password = request.form.get("password", "")
    next_url = request.form.get("next", "")

    if _is_blank(username, password):
        flash(FILL_ALL_FIELDS_MESSAGE, "error")
        return render_template("auth/login.html", next_url=next_url, username=username), 400

    result = get_services().auth_service.authenticate_user(username, password)
    if not result.ok:
        status = 500 if isinstance(result.error, WikiStoreError) else 401
        flash(str(result.error) if status == 401 else "Login is temporarily unavailable", "error")
        return render_template("auth/login.html", next_url=next_url, username=username), status

    # セッションは PERMANENT_SESSION_LIFETIME (既定 20 分) で失効する
    session.permanent = True
    login_user(LoginUser.from_domain(result.value))
    current_app.logger.info(
        "User logged in",
        extra={"event": "auth.login", "user_id": result.value.id},
    )
    return redirect(_safe_next_url(next_url) or url_for("wiki.index"))


@bp.route("/register", methods=["GET", "POST"])
def register():
    if request.method == "GET":
        return render_template("auth/register.html")

    username = request.form.get("username", "")
    password = request.form.get("password", "")

    if _is_blank(username, password):
        flash(FILL_ALL_FIELDS_MESSAGE, "error")
        return render_template("auth/register.html", username=username), 400

    result = get_services().auth_service.register_user(username, password)
    if not result.ok:
        if isinstance(result.error, WikiStoreError):
            message = "An error occurred while registering the user."
        else:
            message = str(result.error)
        flash(message, "error")
        status = 400 if isinstance(result.error, WikiValidationError) else 409
        if isinstance(result.error, WikiStoreError):
            status = 500
        return render_template("auth/register.html", username=username), status

    flash("Registration successful", "success")
    return redirect(url_for("auth.login"))


@bp.route("/logout", methods=["POST"])
def logout():
    logout_user()
    session.clear()
    return redirect(url_for("wiki.index"))
