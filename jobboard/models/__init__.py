# __init__.py
from jobboard.models.applications import Application, SavedJob
from jobboard.models.audit import AuditLog, ConsentLog
from jobboard.models.billing import Payment, Subscription
from jobboard.models.job_alert import JobAlert
from jobboard.models.jobs import Job
from jobboard.models.profiles import Employer, JobSeeker
from jobboard.models.searches import RecentSearch, SavedSearch
from jobboard.models.skills import JobSeekerSkill, JobSkill, Skill
from jobboard.models.user import User

__all__ = [
	"Application",
	"AuditLog",
	"ConsentLog",
	"Employer",
	"Job",
	"JobAlert",
	"JobSeeker",
	"JobSeekerSkill",
	"JobSkill",
	"Payment",
	"RecentSearch",
	"SavedJob",
	"SavedSearch",
	"Skill",
	"Subscription",
	"User",
]
