"""Session handling and role gates for the portal views."""
from functools import wraps

from flask import redirect, session, url_for

from models import Role


def login_user(user):
    session.clear()
    session["user_id"] = user.id
    session["role"] = user.role.value
    session["name"] = user.name


def logout_user():
    session.clear()


def current_user_id():
    return session.get("user_id")


def current_role():
    return session.get("role")


def dashboard_url(role, user_id):
    if role == Role.ADMIN.value:
        return url_for("admin.dashboard")
    if role == Role.EMPLOYER.value:
        return url_for("employer_dashboard", user_id=user_id)
    if role == Role.CANDIDATE.value:
        return url_for("candidate_dashboard", user_id=user_id)
    return url_for("home")


def role_required(role):
    """Send anonymous visitors to the login page and other roles home."""
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not session.get("user_id"):
                return redirect(url_for("login"))
            if session.get("role") != role.value:
                return redirect(url_for("home"))
            return view(*args, **kwargs)
        return wrapped
    return decorator
