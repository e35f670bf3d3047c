# __init__.py
from jobboard.schemas.applications import ApplicationCreate, ApplicationRead, ApplicationStatusUpdate
from jobboard.schemas.job_alert import AlertProcessDetail, AlertProcessResponse, JobAlertCreate, JobAlertRead, JobAlertUpdate
from jobboard.schemas.jobs import JobCreate, JobDetail, JobListResponse, JobSummary, JobUpdate
from jobboard.schemas.notifications import NotificationRequest, NotificationResponse, NotificationResult
from jobboard.schemas.recommendation import JobRecommendation, RecommendationResponse
from jobboard.schemas.user import EmployerRegister, JobSeekerRegister, Token, TokenData, UserLogin, UserRead

__all__ = [
	"AlertProcessDetail",
	"AlertProcessResponse",
	"ApplicationCreate",
	"ApplicationRead",
	"ApplicationStatusUpdate",
	"EmployerRegister",
	"JobAlertCreate",
	"JobAlertRead",
	"JobAlertUpdate",
	"JobCreate",
	"JobDetail",
	"JobListResponse",
	"JobRecommendation",
	"JobSeekerRegister",
	"JobSummary",
	"JobUpdate",
	"NotificationRequest",
	"NotificationResponse",
	"NotificationResult",
	"RecommendationResponse",
	"Token",
	"TokenData",
	"UserLogin",
	"UserRead",
]
