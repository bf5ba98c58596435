"""Job model"""
from gatedrop.extensions import db
from .base import BaseModel


class JobStatus:
    PENDING_BIDS = 'pending_bids'
    ACCEPTED = 'accepted'
    PICKED_UP = 'picked_up'
    DELIVERED_BY_RUNNER = 'delivered_by_runner'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    # Statuses in which runner_id must be set
    RUNNER_ASSIGNED = (ACCEPTED, PICKED_UP, DELIVERED_BY_RUNNER, COMPLETED)
    RUNNER_CANCELLABLE = (ACCEPTED, PICKED_UP)
    FINISHED = (COMPLETED, CANCELLED)


class PaymentStatus:
    PENDING = 'pending'
    SUCCESSFUL = 'successful'


class Job(BaseModel):
    """
    Job model - a delivery request posted by a requester and fulfilled by a
    runner chosen from its applicants.

    Rows are versioned: every UPDATE is issued as
    ``... WHERE id = :id AND version = :seen`` so two transitions that
    started from the same snapshot cannot both be written.
    """
    __tablename__ = 'jobs'

    requester_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False)
    runner_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    pickup_location = db.Column(db.String(255), nullable=False)
    drop_location = db.Column(db.String(255), nullable=False)
    fee = db.Column(db.Numeric(10, 2), nullable=False)
    deadline = db.Column(db.DateTime(timezone=True))

    # Candidate runner ids; only populated while bidding is open
    applicants = db.Column(db.JSON, nullable=False, default=list)

    payment_id = db.Column(db.String(255), nullable=False)
    payment_status = db.Column(db.String(20), nullable=False, default=PaymentStatus.SUCCESSFUL)

    status = db.Column(db.String(30), nullable=False, default=JobStatus.PENDING_BIDS)

    # Denormalised {name, phone} snapshots; written once, never refreshed
    requester_details_cache = db.Column(db.JSON)
    runner_details_cache = db.Column(db.JSON)

    rating_given = db.Column(db.Boolean, nullable=False, default=False)

    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        db.Index('idx_jobs_status', 'status'),
        db.Index('idx_jobs_requester_id', 'requester_id'),
        db.Index('idx_jobs_runner_id', 'runner_id'),
        db.CheckConstraint('fee > 0', name='ck_jobs_fee_positive'),
    )

    requester = db.relationship('User', foreign_keys=[requester_id], backref=db.backref('posted_jobs', lazy='dynamic'))
    runner = db.relationship('User', foreign_keys=[runner_id], backref=db.backref('run_jobs', lazy='dynamic'))

    def __repr__(self):
        return f'<Job {self.id} - {self.status}>'

    def is_party(self, user_id):
        return user_id in (self.requester_id, self.runner_id)

    def has_applicant(self, user_id):
        return user_id in (self.applicants or [])

    def can_view(self, user_id):
        """Requester, runner and applicants always; anyone while bidding is open"""
        return (
            self.is_party(user_id)
            or self.has_applicant(user_id)
            or self.status == JobStatus.PENDING_BIDS
        )

    @classmethod
    def available_for(cls, user_id):
        """Open jobs a runner can bid on, excluding their own posts"""
        return cls.query.filter(
            cls.status == JobStatus.PENDING_BIDS,
            cls.payment_status == PaymentStatus.SUCCESSFUL,
            cls.requester_id != user_id,
        ).order_by(cls.created_at.desc())

    @classmethod
    def posted_by(cls, user_id):
        return cls.query.filter(cls.requester_id == user_id).order_by(cls.created_at.desc())

    @classmethod
    def run_by(cls, user_id):
        return cls.query.filter(cls.runner_id == user_id).order_by(cls.created_at.desc())

    @classmethod
    def history_for(cls, user_id):
        """Finished jobs where the user was either party"""
        return cls.query.filter(
            cls.status.in_(JobStatus.FINISHED),
            db.or_(cls.requester_id == user_id, cls.runner_id == user_id),
        ).order_by(cls.created_at.desc())

    def to_dict(self):
        data = super().to_dict(exclude=['version'])
        data['applicants'] = list(self.applicants or [])
        return data
