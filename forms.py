from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField
from wtforms import (
    BooleanField, DateField, IntegerField, PasswordField, SelectField,
    StringField, SubmitField, TextAreaField,
)
from wtforms.validators import URL, DataRequired, Email, Length, NumberRange, Optional

from storage import IMAGE_EXTENSIONS, RESUME_EXTENSIONS

ROLE_CHOICES = [("candidate", "Candidate"), ("employer", "Employer"), ("admin", "Admin")]
JOB_TYPE_CHOICES = [
    ("Full-time", "Full-time"),
    ("Part-time", "Part-time"),
    ("Contract", "Contract"),
    ("Internship", "Internship"),
    ("Remote", "Remote"),
]


def split_list(text):
    """Comma-separated input to a list: trimmed, no blanks, no repeats."""
    items = []
    for part in (text or "").split(","):
        part = part.strip()
        if part and part not in items:
            items.append(part)
    return items


def resume_field(label="Resume"):
    return FileField(label, validators=[Optional(), FileAllowed(RESUME_EXTENSIONS, "Resume must be a PDF or Word document")])


def image_field(label):
    return FileField(label, validators=[Optional(), FileAllowed(IMAGE_EXTENSIONS, "Images only")])


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(), Email(message="Please enter a valid email address.")])
    password = PasswordField('Password', validators=[DataRequired(message="Password is required.")])
    role = SelectField('Role', choices=ROLE_CHOICES, default="candidate", validators=[DataRequired()])
    submit = SubmitField('Log In')


class AccountFields(FlaskForm):
    name = StringField('Name', validators=[DataRequired(), Length(min=2, message="Name must be at least 2 characters.")])
    email = StringField('Email', validators=[DataRequired(), Email(message="Please enter a valid email address.")])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=8, message="Password must be at least 8 characters.")])


class CandidateSignupForm(AccountFields):
    resume = resume_field()
    bio = TextAreaField('Bio', validators=[Optional(), Length(max=500, message="Bio must not exceed 500 characters.")])
    skills = StringField('Skills (comma separated)', validators=[Optional()])
    experience_years = IntegerField('Years of experience', validators=[Optional(), NumberRange(min=0)])
    education = StringField('Education', validators=[Optional()])
    linkedin_url = StringField('LinkedIn URL', validators=[Optional(), URL(message="Please enter a valid LinkedIn URL.")])
    profile_picture = image_field('Profile picture')
    submit = SubmitField('Create candidate account')


class EmployerSignupForm(AccountFields):
    company_name = StringField('Company name', validators=[DataRequired(), Length(min=2, message="Company name must be at least 2 characters.")])
    company_website = StringField('Company website', validators=[Optional(), URL(message="Please enter a valid URL.")])
    company_description = TextAreaField('Company description', validators=[Optional(), Length(max=500, message="Description must not exceed 500 characters.")])
    company_logo = image_field('Company logo')
    profile_picture = image_field('Profile picture')
    submit = SubmitField('Create employer account')


class JobForm(FlaskForm):
    title = StringField('Job Title', validators=[DataRequired(), Length(min=2, message="Job title must be at least 2 characters.")])
    description = TextAreaField('Job Description', validators=[DataRequired(), Length(min=10, message="Job description must be at least 10 characters.")])
    type = SelectField('Job Type', choices=JOB_TYPE_CHOICES, validators=[DataRequired(message="Please select a job type.")])
    salary = StringField('Salary', validators=[DataRequired(message="Salary is required.")])
    deadline = DateField('Application deadline', validators=[DataRequired(message="Application deadline is required.")])
    tags = StringField('Tags (comma separated)', validators=[Optional()])
    submit = SubmitField('Save Job')

    def payload(self):
        return {
            "title": self.title.data.strip(),
            "description": self.description.data.strip(),
            "type": self.type.data,
            "tags": split_list(self.tags.data),
            "salary": self.salary.data.strip(),
            "deadline": self.deadline.data.isoformat(),
        }

    def fill(self, job):
        self.title.data = job.title
        self.description.data = job.description
        self.type.data = job.type
        self.salary.data = job.salary
        self.deadline.data = job.deadline
        self.tags.data = ", ".join(job.tags)


class ApplyForm(FlaskForm):
    message = TextAreaField('Message to the employer', validators=[Optional(), Length(max=2000)])
    resume = resume_field('Resume (leave empty to use your profile resume)')
    submit = SubmitField('Submit Application')


class AccountForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(), Length(min=2)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    profile_picture = image_field('Profile picture')
    submit = SubmitField('Save account')


class CandidateProfileForm(FlaskForm):
    resume = resume_field()
    bio = TextAreaField('Bio', validators=[Optional(), Length(max=500)])
    skills = StringField('Skills (comma separated)', validators=[Optional()])
    experience_years = IntegerField('Years of experience', validators=[Optional(), NumberRange(min=0)])
    education = StringField('Education', validators=[Optional()])
    linkedin_url = StringField('LinkedIn URL', validators=[Optional(), URL()])
    portfolio_url = StringField('Portfolio URL', validators=[Optional(), URL()])
    submit = SubmitField('Save profile')


class EmployerProfileForm(FlaskForm):
    company_name = StringField('Company name', validators=[DataRequired(), Length(min=2)])
    company_website = StringField('Company website', validators=[Optional(), URL()])
    company_description = TextAreaField('Company description', validators=[Optional(), Length(max=500)])
    company_logo = image_field('Company logo')
    submit = SubmitField('Save company')


class CreateAdminForm(AccountFields):
    submit = SubmitField('Create admin')


class EditUserForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(), Length(min=2)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    role = SelectField('Role', choices=ROLE_CHOICES, validators=[DataRequired()])
    is_blocked = BooleanField('Blocked')
    submit = SubmitField('Save user')
