"""SQLAlchemy models package"""
from .base import generate_uuid, utcnow
from .user import User
from .job import Job, JobStatus, PaymentStatus

__all__ = [
    'User',
    'Job',
    'JobStatus',
    'PaymentStatus',
    'generate_uuid',
    'utcnow',
]
