from flask import (
    Flask, render_template, request, redirect,
    session, url_for, flash
)
from flask_wtf import CSRFProtect
from werkzeug.security import generate_password_hash, check_password_hash
from dotenv import load_dotenv
from functools import partial
import logging
import os

from api_client import APIError, ErrorKind
from auth import dashboard_url, login_user, logout_user, role_required
from dashboards import employer_stats
from employers import enrich, get_employers, load_enriched_jobs
from forms import (
    AccountForm, ApplyForm, CandidateProfileForm, CandidateSignupForm,
    EmployerProfileForm, EmployerSignupForm, JobForm, LoginForm, split_list
)
from listing import JobFilter, filter_jobs, available_tags, available_types, load_more, related_jobs, search_applications
from matching import MatchError
from models import Application, ApplicationStatus, EmployerProfile, EmployerSummary, Job, Role, User
from services import fetch_all, get_api, get_employer_cache, get_matcher, get_storage, init_services
from submission import FormSubmission

load_dotenv()

# ================= LOGGING =================
logging.basicConfig(
    level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# ================= APP =================
app = Flask(__name__)
app.config["PREFERRED_URL_SCHEME"] = "https"

# ================= SECRET KEY =================
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key")

# ================= SESSION CONFIG =================
app.config.update(
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SAMESITE="Lax",
    SESSION_COOKIE_SECURE=os.environ.get("RENDER") == "true"
)

# ================= BACKEND CONFIG =================
app.config.update(
    API_BASE_URL=os.environ.get("API_BASE_URL", "http://localhost:8000"),
    API_TIMEOUT=float(os.environ.get("API_TIMEOUT", "15")),
    SUPABASE_URL=os.environ.get("SUPABASE_URL", ""),
    SUPABASE_ANON_KEY=os.environ.get("SUPABASE_ANON_KEY", ""),
    OPENAI_API_KEY=os.environ.get("OPENAI_API_KEY", ""),
    OPENAI_MODEL=os.environ.get("OPENAI_MODEL", "gpt-4o"),
    JOBS_PAGE_SIZE=int(os.environ.get("JOBS_PAGE_SIZE", "10")),
)

csrf = CSRFProtect(app)
init_services(app)

from admin import admin_bp  # noqa: E402

app.register_blueprint(admin_bp)


def _int_arg(name, default):
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default


def _flash_form_errors(form):
    for errors in form.errors.values():
        for error in errors:
            flash(error, "error")


# ================= HOME =================
@app.route("/")
def home():
    role = session.get("role")
    if session.get("user_id") and role in {r.value for r in Role}:
        return redirect(dashboard_url(role, session["user_id"]))
    session.clear()
    return redirect(url_for("login"))

# ================= SIGNUP =================
def _create_account(form, role, picture_url):
    return get_api().create_user({
        "name": form.name.data.strip(),
        "email": form.email.data.strip(),
        "password_hash": generate_password_hash(form.password.data),
        "role": role.value,
        "is_blocked": False,
        "profile_picture_url": picture_url,
    })


def _signup_candidate(form):
    storage = get_storage()
    picture_url = storage.upload_optional(form.profile_picture.data)
    resume_url = storage.upload_optional(form.resume.data)

    user = _create_account(form, Role.CANDIDATE, picture_url)
    get_api().create_candidate({
        "user_id": user["id"],
        "resume_url": resume_url,
        "bio": form.bio.data or None,
        "skills": split_list(form.skills.data),
        "experience_years": form.experience_years.data,
        "education": form.education.data or None,
        "linkedin_url": form.linkedin_url.data or None,
    })
    return user


def _signup_employer(form):
    storage = get_storage()
    picture_url = storage.upload_optional(form.profile_picture.data)
    logo_url = storage.upload_optional(form.company_logo.data)

    user = _create_account(form, Role.EMPLOYER, picture_url)
    get_api().create_employer({
        "user_id": user["id"],
        "company_name": form.company_name.data.strip(),
        "company_website": form.company_website.data or None,
        "company_description": form.company_description.data or None,
        "company_logo_url": logo_url,
    })
    return user


@app.route("/signup", methods=["GET", "POST"])
def signup():
    role = "employer" if request.args.get("role") == "employer" else "candidate"
    if role == "employer":
        form, action = EmployerSignupForm(), _signup_employer
    else:
        form, action = CandidateSignupForm(), _signup_candidate

    submission = FormSubmission("Signup")
    if form.validate_on_submit():
        if submission.run(action, form):
            flash(f"Account created! You can now log in as {role}.", "success")
            return redirect(url_for("login"))
        flash(f"Signup failed: {submission.error}", "error")

    return render_template("signup.html", form=form, role=role, submission=submission)

# ================= LOGIN =================
def _authenticate(form):
    try:
        record = get_api().get_user_by_email_role(form.email.data.strip(), form.role.data)
    except APIError as exc:
        if exc.kind is ErrorKind.HTTP and exc.status_code in (401, 404):
            raise APIError(ErrorKind.VALIDATION, "Invalid email or role.")
        raise

    # A 200 with no user in it, or an unknown role, is a failed lookup
    if not (record.get("user") or record).get("id"):
        raise APIError(ErrorKind.VALIDATION, "Invalid email or role.")
    try:
        user = User.from_api(record)
    except ValueError:
        raise APIError(ErrorKind.VALIDATION, "Invalid email or role.")

    if not check_password_hash(user.password_hash, form.password.data):
        raise APIError(ErrorKind.VALIDATION, "Invalid password or role.")
    if user.is_blocked:
        raise APIError(ErrorKind.VALIDATION, "This account has been blocked.")
    return user


@app.route("/login", methods=["GET", "POST"])
def login():
    form = LoginForm()
    submission = FormSubmission("Login")

    if form.validate_on_submit():
        if submission.run(_authenticate, form):
            user = submission.result
            login_user(user)
            logger.info("User %s logged in as %s", user.id, user.role.value)
            flash("Login successful!", "success")
            return redirect(dashboard_url(user.role.value, user.id))
        flash(submission.error, "error")

    return render_template("login.html", form=form, submission=submission)

# ================= LOGOUT =================
@app.route("/logout")
def logout():
    logout_user()
    return redirect("/login")

# ================= CANDIDATE DASHBOARD =================
@app.route("/candidate/dashboard/<user_id>")
@role_required(Role.CANDIDATE)
def candidate_dashboard(user_id):
    if user_id != session["user_id"]:
        return redirect(url_for("candidate_dashboard", user_id=session["user_id"]))

    api = get_api()
    try:
        jobs = load_enriched_jobs(api.list_jobs(), api, get_employer_cache())
    except APIError as exc:
        logger.warning("Job feed unavailable: %s", exc)
        flash(f"Could not load jobs: {exc.message}", "error")
        jobs = []

    flt = JobFilter.from_args(request.args)
    matching = filter_jobs(jobs, flt)
    page = load_more(matching, _int_arg("page", 1), app.config["JOBS_PAGE_SIZE"])

    args = request.args.to_dict(flat=False)
    args["page"] = page.page + 1

    return render_template(
        "candidate_dashboard.html",
        page=page,
        flt=flt,
        more_url=url_for("candidate_dashboard", user_id=user_id, **args),
        all_tags=available_tags(jobs),
        all_types=available_types(jobs),
        username=session.get("name")
    )

# ================= JOB DETAIL =================
def _load_job_detail(job_id, user_id):
    api = get_api()
    cache = get_employer_cache()

    job = Job.from_api(api.get_job(job_id))
    employer_data, raw_jobs, me = fetch_all(
        partial(api.get_user, job.employer_id),
        api.list_jobs,
        partial(api.get_user, user_id),
    )
    cache.set_if_absent(job.employer_id, EmployerSummary.from_api(job.employer_id, employer_data))

    others = related_jobs([Job.from_api(raw) for raw in raw_jobs], job)
    candidate = User.from_api(me)
    applied = any(str(a.get("job_id")) == job.id for a in me.get("applications") or [])

    return {
        "job": enrich([job], cache)[0],
        "employer": EmployerProfile.from_api(employer_data.get("employer")),
        "related": enrich(others, cache),
        "candidate": candidate,
        "has_applied": applied,
    }


def _render_job_detail(job_id, match=None):
    try:
        detail = _load_job_detail(job_id, session["user_id"])
    except APIError as exc:
        logger.warning("Job %s unavailable: %s", job_id, exc)
        flash("Job not found." if exc.not_found else f"Could not load job: {exc.message}", "error")
        return redirect(url_for("candidate_dashboard", user_id=session["user_id"]))

    return render_template("job_detail.html", form=ApplyForm(), match=match, **detail)


@app.route("/candidate/job/<job_id>")
@role_required(Role.CANDIDATE)
def candidate_job(job_id):
    return _render_job_detail(job_id)

# ================= APPLY JOB =================
def _submit_application(job_id, form):
    api = get_api()
    user_id = session["user_id"]
    job_record, me = fetch_all(partial(api.get_job, job_id), partial(api.get_user, user_id))
    job = Job.from_api(job_record)

    if any(str(a.get("job_id")) == job.id for a in me.get("applications") or []):
        raise APIError(ErrorKind.VALIDATION, "You have already applied for this job.")
    if job.is_expired():
        raise APIError(ErrorKind.VALIDATION, "The application deadline has passed.")

    candidate = User.from_api(me).candidate
    resume_url = get_storage().upload_optional(form.resume.data)
    if not resume_url and candidate:
        resume_url = candidate.resume_url
    if not resume_url:
        raise APIError(ErrorKind.VALIDATION, "Upload a resume or add one to your profile first.")

    return api.create_application({
        "candidate_id": user_id,
        "job_id": job.id,
        "resume_url": resume_url,
        "message": form.message.data or "",
        "status": ApplicationStatus.PENDING.value,
    })


@app.route("/candidate/job/<job_id>/apply", methods=["POST"])
@role_required(Role.CANDIDATE)
def apply_job(job_id):
    form = ApplyForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for("candidate_job", job_id=job_id))

    submission = FormSubmission("Application")
    if submission.run(_submit_application, job_id, form):
        flash("Application submitted!", "success")
    else:
        flash(submission.error, "error")
    return redirect(url_for("candidate_job", job_id=job_id))

# ================= RESUME MATCH (CANDIDATE) =================
def _match_resume(resume_url, job):
    if not resume_url:
        raise MatchError("No resume on file to compare.")
    text = get_api().extract_pdf_text(resume_url)
    return get_matcher().match(text, job.match_text)


@app.route("/candidate/job/<job_id>/match", methods=["POST"])
@role_required(Role.CANDIDATE)
def candidate_match(job_id):
    api = get_api()
    submission = FormSubmission("Resume match")
    try:
        job_record, me = fetch_all(partial(api.get_job, job_id), partial(api.get_user, session["user_id"]))
    except APIError as exc:
        flash(f"Could not check resume: {exc.message}", "error")
        return redirect(url_for("candidate_job", job_id=job_id))

    candidate = User.from_api(me).candidate
    if submission.run(_match_resume, candidate.resume_url if candidate else None, Job.from_api(job_record)):
        return _render_job_detail(job_id, match=submission.result)
    flash(submission.error, "error")
    return redirect(url_for("candidate_job", job_id=job_id))

# ================= CANDIDATE APPLICATIONS =================
def _attach_jobs(applications):
    """Join applications with their jobs, company names included."""
    api = get_api()
    job_ids = sorted({a.job_id for a in applications})
    records = fetch_all(*[partial(api.get_job, job_id) for job_id in job_ids])
    jobs = [Job.from_api(record) for record in records]

    cache = get_employer_cache()
    get_employers({job.employer_id for job in jobs}, api, cache)
    by_id = {job.id: job for job in enrich(jobs, cache)}
    for application in applications:
        application.job = by_id.get(application.job_id)
    return applications


@app.route("/candidate/applications")
@role_required(Role.CANDIDATE)
def candidate_applications():
    try:
        me = get_api().get_user(session["user_id"])
        applications = [Application.from_api(a) for a in me.get("applications") or []]
        _attach_jobs(applications)
    except APIError as exc:
        logger.warning("Applications unavailable: %s", exc)
        flash(f"Could not load applications: {exc.message}", "error")
        applications = []

    applications.sort(key=lambda a: a.applied_at.timestamp() if a.applied_at else 0, reverse=True)
    return render_template("candidate_applications.html", applications=applications)

# ================= PROFILES =================
def _update_account(user, form):
    picture_url = get_storage().upload_optional(form.profile_picture.data) or user.profile_picture_url
    get_api().update_user({
        "user_id": user.id,
        "name": form.name.data.strip(),
        "email": form.email.data.strip(),
        "profile_picture_url": picture_url,
    })
    session["name"] = form.name.data.strip()


def _update_candidate(user, form):
    current = user.candidate.resume_url if user.candidate else None
    resume_url = get_storage().upload_optional(form.resume.data) or current
    get_api().update_user({
        "user_id": user.id,
        "role": Role.CANDIDATE.value,
        "resume_url": resume_url,
        "bio": form.bio.data or None,
        "skills": split_list(form.skills.data),
        "experience_years": form.experience_years.data,
        "education": form.education.data or None,
        "linkedin_url": form.linkedin_url.data or None,
        "portfolio_url": form.portfolio_url.data or None,
    })


def _update_employer(user, form):
    current = user.employer.company_logo_url if user.employer else None
    logo_url = get_storage().upload_optional(form.company_logo.data) or current
    get_api().update_user({
        "user_id": user.id,
        "role": Role.EMPLOYER.value,
        "company_name": form.company_name.data.strip(),
        "company_website": form.company_website.data or None,
        "company_description": form.company_description.data or None,
        "company_logo_url": logo_url,
    })


def _profile_page(user_id, role, details_form_class, update_details, template):
    endpoint = request.endpoint
    if user_id != session["user_id"]:
        return redirect(url_for(endpoint, user_id=session["user_id"]))

    try:
        user = User.from_api(get_api().get_user(user_id))
    except APIError as exc:
        flash(f"Could not load profile: {exc.message}", "error")
        return redirect(dashboard_url(role.value, user_id))

    account = AccountForm(prefix="account")
    details = details_form_class(prefix="details")

    for form, action, label in ((account, _update_account, "Profile"), (details, update_details, "Details")):
        if form.submit.data and form.validate_on_submit():
            submission = FormSubmission(f"{label} update")
            if submission.run(action, user, form):
                flash(f"{label} updated.", "success")
                return redirect(url_for(endpoint, user_id=user_id))
            flash(submission.error, "error")

    if request.method == "GET":
        account.name.data = user.name
        account.email.data = user.email
        _fill_details(details, user)

    return render_template(template, user=user, account_form=account, details_form=details)


def _fill_details(form, user):
    if isinstance(form, CandidateProfileForm) and user.candidate:
        profile = user.candidate
        form.bio.data = profile.bio
        form.skills.data = ", ".join(profile.skills)
        form.experience_years.data = profile.experience_years
        form.education.data = profile.education
        form.linkedin_url.data = profile.linkedin_url
        form.portfolio_url.data = profile.portfolio_url
    elif isinstance(form, EmployerProfileForm) and user.employer:
        company = user.employer
        form.company_name.data = company.company_name
        form.company_website.data = company.company_website
        form.company_description.data = company.company_description


@app.route("/candidate/profile/<user_id>", methods=["GET", "POST"])
@role_required(Role.CANDIDATE)
def candidate_profile(user_id):
    return _profile_page(user_id, Role.CANDIDATE, CandidateProfileForm, _update_candidate, "candidate_profile.html")


@app.route("/employer/profile/<user_id>", methods=["GET", "POST"])
@role_required(Role.EMPLOYER)
def employer_profile(user_id):
    return _profile_page(user_id, Role.EMPLOYER, EmployerProfileForm, _update_employer, "employer_profile.html")

# ================= EMPLOYER DASHBOARD =================
@app.route("/employer/dashboard/<user_id>")
@role_required(Role.EMPLOYER)
def employer_dashboard(user_id):
    if user_id != session["user_id"]:
        return redirect(url_for("employer_dashboard", user_id=session["user_id"]))

    try:
        data = get_api().get_user(user_id)
    except APIError as exc:
        logger.warning("Employer %s data unavailable: %s", user_id, exc)
        flash(f"Could not load dashboard: {exc.message}", "error")
        data = {}

    jobs = [Job.from_api(j) for j in data.get("jobs") or []]
    applications = [Application.from_api(a) for a in data.get("applications") or []]

    return render_template(
        "employer_dashboard.html",
        jobs=jobs,
        stats=employer_stats(jobs, applications),
        username=session.get("name")
    )

# ================= POST JOB =================
@app.route("/employer/create-job", methods=["GET", "POST"])
@role_required(Role.EMPLOYER)
def create_job():
    form = JobForm()
    submission = FormSubmission("Create job")

    if form.validate_on_submit():
        payload = dict(form.payload(), employer_id=session["user_id"])
        if submission.run(get_api().create_job, payload):
            flash("Job posted successfully", "success")
            return redirect(url_for("employer_dashboard", user_id=session["user_id"]))
        flash(f"Failed to create job: {submission.error}", "error")

    return render_template("job_form.html", form=form, heading="Post a Job", submission=submission)

# ================= EDIT JOB =================
def _owned_job(job_id):
    """The job if the logged-in employer posted it, else None (with a flash)."""
    try:
        job = Job.from_api(get_api().get_job(job_id))
    except APIError as exc:
        flash("Job not found." if exc.not_found else f"Could not load job: {exc.message}", "error")
        return None
    if job.employer_id != session["user_id"]:
        flash("You can only manage your own jobs.", "error")
        return None
    return job


@app.route("/employer/edit-job/<job_id>", methods=["GET", "POST"])
@role_required(Role.EMPLOYER)
def edit_job(job_id):
    job = _owned_job(job_id)
    if job is None:
        return redirect(url_for("employer_dashboard", user_id=session["user_id"]))

    form = JobForm()
    submission = FormSubmission("Edit job")
    if form.validate_on_submit():
        if submission.run(get_api().update_job, dict(form.payload(), job_id=job.id)):
            flash("Job updated!", "success")
            return redirect(url_for("employer_dashboard", user_id=session["user_id"]))
        flash(f"Failed to update job: {submission.error}", "error")
    elif request.method == "GET":
        form.fill(job)

    return render_template("job_form.html", form=form, heading=f"Edit {job.title}", submission=submission)


@app.route("/employer/job/<job_id>/delete", methods=["POST"])
@role_required(Role.EMPLOYER)
def delete_job(job_id):
    job = _owned_job(job_id)
    if job is not None:
        try:
            get_api().delete_job(job.id)
            flash(f'"{job.title}" has been deleted.', "success")
        except APIError as exc:
            flash(f"Failed to delete job: {exc.message}", "error")
    return redirect(url_for("employer_dashboard", user_id=session["user_id"]))

# ================= EMPLOYER APPLICATIONS =================
@app.route("/employer/applications")
@role_required(Role.EMPLOYER)
def employer_applications():
    api = get_api()
    try:
        data = api.get_user(session["user_id"])
        pending = [
            a for a in (Application.from_api(raw) for raw in data.get("applications") or [])
            if a.status is ApplicationStatus.PENDING
        ]
        job_ids = sorted({a.job_id for a in pending})
        candidate_ids = sorted({a.candidate_id for a in pending})
        results = fetch_all(
            *[partial(api.get_job, i) for i in job_ids],
            *[partial(api.get_user, i) for i in candidate_ids],
        )
    except APIError as exc:
        logger.warning("Applications unavailable: %s", exc)
        flash(f"Could not load applications: {exc.message}", "error")
        pending, job_ids, results = [], [], []

    jobs = {i: Job.from_api(r) for i, r in zip(job_ids, results)}
    candidates = {u.id: u for u in (User.from_api(r) for r in results[len(job_ids):])}
    for application in pending:
        application.job = jobs.get(application.job_id)
        application.candidate = candidates.get(application.candidate_id)

    query = request.args.get("q", "")
    return render_template(
        "employer_applications.html",
        applications=search_applications(pending, query),
        query=query
    )

# ================= APPLICATION DETAIL =================
def _load_application(application_id):
    data = get_api().get_application(application_id)
    application = Application.from_api(data)
    application.job = Job.from_api(data["job"]) if data.get("job") else None
    if data.get("candidate_user"):
        application.candidate = User.from_api({"user": data["candidate_user"], "candidate": data.get("candidate")})
    return application


def _owned_application(application_id):
    try:
        application = _load_application(application_id)
    except APIError as exc:
        flash("Application not found." if exc.not_found else f"Could not load application: {exc.message}", "error")
        return None
    if application.job is None or application.job.employer_id != session["user_id"]:
        flash("You can only review applications to your own jobs.", "error")
        return None
    return application


@app.route("/employer/application/<application_id>")
@role_required(Role.EMPLOYER)
def employer_application(application_id):
    application = _owned_application(application_id)
    if application is None:
        return redirect(url_for("employer_applications"))
    return render_template("application_detail.html", application=application, match=None)

# ================= ACCEPT / REJECT =================
def _decide(application_id, status):
    application = _owned_application(application_id)
    if application is None:
        return redirect(url_for("employer_applications"))

    submission = FormSubmission("Application review")
    if submission.run(get_api().update_application, application.id, status.value):
        verb = "approved" if status is ApplicationStatus.ACCEPTED else "rejected"
        flash(f"You have {verb} {application.candidate_name}'s application.", "success")
        return redirect(url_for("employer_applications"))
    flash(f"Failed to update application: {submission.error}", "error")
    return redirect(url_for("employer_application", application_id=application_id))


@app.route("/employer/application/<application_id>/accept", methods=["POST"])
@role_required(Role.EMPLOYER)
def accept_applicant(application_id):
    return _decide(application_id, ApplicationStatus.ACCEPTED)


@app.route("/employer/application/<application_id>/reject", methods=["POST"])
@role_required(Role.EMPLOYER)
def reject_applicant(application_id):
    return _decide(application_id, ApplicationStatus.REJECTED)


@app.route("/employer/application/<application_id>/match", methods=["POST"])
@role_required(Role.EMPLOYER)
def employer_match(application_id):
    application = _owned_application(application_id)
    if application is None:
        return redirect(url_for("employer_applications"))

    submission = FormSubmission("Resume match")
    if submission.run(_match_resume, application.resume_url, application.job):
        return render_template("application_detail.html", application=application, match=submission.result)
    flash(f"Failed to check resume: {submission.error}", "error")
    return redirect(url_for("employer_application", application_id=application_id))

# ================= RUN =================
if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port)
