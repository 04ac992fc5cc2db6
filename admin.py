"""
Admin portal blueprint.

Dashboard statistics plus user and job management. Every collection is
fetched fresh from the backend; search and role filters run over the
fetched lists.
"""

import logging

from flask import Blueprint, flash, redirect, render_template, request, session, url_for
from werkzeug.security import generate_password_hash

from api_client import APIError
from auth import role_required
from dashboards import admin_stats
from employers import enrich, get_employers, load_enriched_jobs
from forms import CreateAdminForm, EditUserForm, JobForm
from listing import filter_users, search_jobs
from models import Application, Job, Role, User
from services import fetch_all, get_api, get_employer_cache
from submission import FormSubmission

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# ================= DASHBOARD =================
@admin_bp.route("/dashboard")
@role_required(Role.ADMIN)
def dashboard():
    api = get_api()
    try:
        raw_users, raw_jobs, raw_applications = fetch_all(api.list_users, api.list_jobs, api.list_applications)
    except APIError as exc:
        logger.warning("Admin dashboard data unavailable: %s", exc)
        flash(f"Could not load dashboard: {exc.message}", "error")
        return render_template("admin_dashboard.html", stats=None)

    stats = admin_stats(
        [User.from_api(u) for u in raw_users],
        [Job.from_api(j) for j in raw_jobs],
        [Application.from_api(a) for a in raw_applications],
    )
    cache = get_employer_cache()
    get_employers({job.employer_id for job in stats.recent_jobs}, api, cache)
    stats.recent_jobs = enrich(stats.recent_jobs, cache)

    return render_template("admin_dashboard.html", stats=stats)


# ================= USERS =================
@admin_bp.route("/users")
@role_required(Role.ADMIN)
def users():
    query = request.args.get("q", "")
    role = request.args.get("role", "all")
    try:
        all_users = [User.from_api(u) for u in get_api().list_users()]
    except APIError as exc:
        flash(f"Could not load users: {exc.message}", "error")
        all_users = []

    return render_template(
        "admin_users.html",
        users=filter_users(all_users, query, role),
        query=query,
        role=role,
        roles=["all"] + [r.value for r in Role],
    )


def _load_user(user_id):
    try:
        return User.from_api(get_api().get_user(user_id))
    except APIError as exc:
        flash("User not found." if exc.not_found else f"Could not load user: {exc.message}", "error")
        return None


@admin_bp.route("/users/<user_id>/block", methods=["POST"])
@role_required(Role.ADMIN)
def toggle_block(user_id):
    if user_id == session["user_id"]:
        flash("You cannot block your own account.", "error")
        return redirect(url_for("admin.users"))

    user = _load_user(user_id)
    if user is not None:
        blocked = not user.is_blocked
        try:
            get_api().update_user({"user_id": user.id, "is_blocked": blocked})
            flash(f"{user.name} has been {'blocked' if blocked else 'unblocked'}.", "success")
        except APIError as exc:
            flash(f"Failed to update {user.name}: {exc.message}", "error")
    return redirect(url_for("admin.users"))


@admin_bp.route("/users/<user_id>/delete", methods=["POST"])
@role_required(Role.ADMIN)
def delete_user(user_id):
    if user_id == session["user_id"]:
        flash("You cannot delete your own account.", "error")
        return redirect(url_for("admin.users"))

    try:
        get_api().delete_user(user_id)
        flash("User deleted.", "success")
    except APIError as exc:
        flash(f"Failed to delete user: {exc.message}", "error")
    return redirect(url_for("admin.users"))


@admin_bp.route("/users/<user_id>/edit", methods=["GET", "POST"])
@role_required(Role.ADMIN)
def edit_user(user_id):
    user = _load_user(user_id)
    if user is None:
        return redirect(url_for("admin.users"))

    form = EditUserForm()
    submission = FormSubmission("Edit user")
    if form.validate_on_submit():
        payload = {
            "user_id": user.id,
            "name": form.name.data.strip(),
            "email": form.email.data.strip(),
            "role": form.role.data,
            "is_blocked": form.is_blocked.data,
        }
        if submission.run(get_api().update_user, payload):
            flash(f"{payload['name']} has been updated.", "success")
            return redirect(url_for("admin.users"))
        flash(submission.error, "error")
    elif request.method == "GET":
        form.name.data = user.name
        form.email.data = user.email
        form.role.data = user.role.value
        form.is_blocked.data = user.is_blocked

    return render_template("admin_user_form.html", form=form, heading=f"Edit {user.name}")


@admin_bp.route("/users/new-admin", methods=["GET", "POST"])
@role_required(Role.ADMIN)
def create_admin():
    form = CreateAdminForm()
    submission = FormSubmission("Create admin")
    if form.validate_on_submit():
        payload = {
            "name": form.name.data.strip(),
            "email": form.email.data.strip(),
            "password_hash": generate_password_hash(form.password.data),
            "role": Role.ADMIN.value,
            "is_blocked": False,
            "profile_picture_url": None,
        }
        if submission.run(get_api().create_user, payload):
            flash(f"Admin {payload['name']} created.", "success")
            return redirect(url_for("admin.users"))
        flash(submission.error, "error")

    return render_template("admin_user_form.html", form=form, heading="Create Admin")


# ================= JOBS =================
@admin_bp.route("/jobs")
@role_required(Role.ADMIN)
def jobs():
    api = get_api()
    query = request.args.get("q", "")
    try:
        all_jobs = load_enriched_jobs(api.list_jobs(), api, get_employer_cache())
    except APIError as exc:
        flash(f"Could not load jobs: {exc.message}", "error")
        all_jobs = []

    return render_template("admin_jobs.html", jobs=search_jobs(all_jobs, query), query=query)


@admin_bp.route("/jobs/<job_id>/edit", methods=["GET", "POST"])
@role_required(Role.ADMIN)
def edit_job(job_id):
    try:
        job = Job.from_api(get_api().get_job(job_id))
    except APIError as exc:
        flash("Job not found." if exc.not_found else f"Could not load job: {exc.message}", "error")
        return redirect(url_for("admin.jobs"))

    form = JobForm()
    submission = FormSubmission("Edit job")
    if form.validate_on_submit():
        if submission.run(get_api().update_job, dict(form.payload(), job_id=job.id)):
            flash(f'"{form.title.data}" has been updated.', "success")
            return redirect(url_for("admin.jobs"))
        flash(submission.error, "error")
    elif request.method == "GET":
        form.fill(job)

    return render_template("job_form.html", form=form, heading=f"Edit {job.title}", submission=submission)


@admin_bp.route("/jobs/<job_id>/delete", methods=["POST"])
@role_required(Role.ADMIN)
def delete_job(job_id):
    try:
        get_api().delete_job(job_id)
        flash("Job deleted.", "success")
    except APIError as exc:
        flash(f"Failed to delete job: {exc.message}", "error")
    return redirect(url_for("admin.jobs"))
