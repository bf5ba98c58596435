"""
Job lifecycle engine.

    pending_bids --choose_runner--> accepted --mark_picked_up--> picked_up
        --mark_delivered--> delivered_by_runner --confirm_delivery--> completed

    accepted / picked_up --cancel_delivery--> cancelled

Applying and withdrawing a bid keep the job in pending_bids.

Every operation loads the job, checks its guard, writes, and commits in one
transaction. Job rows are versioned, so if another request wrote the same job
after it was loaded the write matches no row, everything is rolled back and
the caller gets InvalidStateTransition. Bidding loads the job under a row
lock instead, so concurrent applies wait for each other rather than
colliding. Events are published only after a successful commit, and a
failing fan-out is logged, never raised.
"""
import dataclasses
import logging
from contextlib import contextmanager

from sqlalchemy.orm.exc import StaleDataError

from gatedrop.errors import (
    AlreadyRated,
    BelowMinimum,
    DuplicateApplication,
    InvalidStateTransition,
    NotFound,
    Unauthorized,
    ValidationError,
)
from gatedrop.fanout import (
    APPLICANT_ADDED,
    APPLICANT_REMOVED,
    BALANCE_CHANGED,
    JOB_CREATED,
    JOB_TAKEN,
    JOB_UPDATED,
    RUNNER_REPORTED,
)
from gatedrop.models import Job, JobStatus, PaymentStatus, User
from gatedrop.utils import to_money
from .ledger import Ledger
from .reputation import Reputation

logger = logging.getLogger(__name__)


class JobLifecycleEngine:

    def __init__(self, session, fanout, policy, ledger=None, reputation=None):
        self.session = session
        self.fanout = fanout
        self.policy = policy
        self.ledger = ledger or Ledger(session, policy)
        self.reputation = reputation or Reputation(session, policy)

        self._handlers = {
            "create_job": self.create_job,
            "apply": self.apply,
            "cancel_bid": self.cancel_bid,
            "choose_runner": self.choose_runner,
            "mark_picked_up": self.mark_picked_up,
            "mark_delivered": self.mark_delivered,
            "confirm_delivery": self.confirm_delivery,
            "rate": self.rate,
            "cancel_delivery": self.cancel_delivery,
            "report": self.report,
        }

    def handle(self, command):
        """Run the operation named by a command from gatedrop.commands."""
        handler = self._handlers.get(getattr(command, "operation", None))
        if handler is None:
            raise ValidationError("Unknown operation")
        return handler(**dataclasses.asdict(command))

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    @contextmanager
    def _transition(self):
        events = []
        try:
            yield events
            self.session.commit()
        except StaleDataError:
            self.session.rollback()
            raise InvalidStateTransition(
                "Job was changed by another request; re-fetch and try again"
            )
        except Exception:
            self.session.rollback()
            raise
        try:
            self.fanout.publish(events)
        except Exception:
            logger.exception("Failed to publish %d events", len(events))

    def _load_job(self, job_id, lock=False):
        if lock:
            # Row lock serialises concurrent bidders on the same job
            job = self.session.get(Job, job_id, with_for_update=True, populate_existing=True)
        else:
            job = self.session.get(Job, job_id)
        if job is None:
            raise NotFound("Job not found")
        return job

    def _load_user(self, user_id, message="User not found"):
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFound(message)
        return user

    @staticmethod
    def _require_status(job, allowed, message):
        if isinstance(allowed, str):
            allowed = (allowed,)
        if job.status not in allowed:
            raise InvalidStateTransition(
                "{} (current status: {})".format(message, job.status)
            )

    @staticmethod
    def _require_requester(job, user_id):
        if job.requester_id != user_id:
            raise Unauthorized("You are not the requester for this job")

    @staticmethod
    def _require_runner(job, user_id):
        if job.runner_id is None or job.runner_id != user_id:
            raise Unauthorized("You are not the runner for this job")

    def _job_updated(self, job):
        return (job.id, JOB_UPDATED, {"job": job.to_dict()})

    # ------------------------------------------------------------------
    # Creation and bidding
    # ------------------------------------------------------------------
    def create_job(self, requester_id, title, description, pickup_location,
                   drop_location, fee, payment_id, deadline=None):
        fee = to_money(fee)
        if fee is None:
            raise ValidationError("fee must be a number")
        with self._transition() as events:
            requester = self._load_user(requester_id)
            if fee < self.policy.min_job_fee:
                raise BelowMinimum(
                    "Minimum fee is {:.2f}".format(self.policy.min_job_fee)
                )

            job = Job(
                requester_id=requester.id,
                title=title,
                description=description,
                pickup_location=pickup_location,
                drop_location=drop_location,
                fee=fee,
                deadline=deadline,
                applicants=[],
                payment_id=payment_id,
                payment_status=PaymentStatus.SUCCESSFUL,
                status=JobStatus.PENDING_BIDS,
                requester_details_cache=requester.details_snapshot(),
            )
            self.session.add(job)
            self.session.flush()
            events.append((None, JOB_CREATED, {"job": job.to_dict()}))

        logger.info("Job %s posted by %s for %.2f", job.id, requester_id, fee)
        return job

    def apply(self, job_id, runner_id):
        with self._transition() as events:
            job = self._load_job(job_id, lock=True)
            runner = self._load_user(runner_id, "Runner user not found")
            self.reputation.ensure_not_banned(runner, "Banned accounts cannot apply to jobs")
            self._require_status(job, JobStatus.PENDING_BIDS, "Job is no longer available")
            if job.requester_id == runner_id:
                raise Unauthorized("You cannot apply to your own job")
            if job.has_applicant(runner_id):
                raise DuplicateApplication()

            job.applicants = list(job.applicants or []) + [runner_id]
            self.session.flush()
            events.append((job.id, APPLICANT_ADDED, {
                "job_id": job.id,
                "applicant": runner.public_profile(),
            }))

        logger.info("Runner %s applied to job %s", runner_id, job_id)
        return job

    def cancel_bid(self, job_id, runner_id):
        with self._transition() as events:
            job = self._load_job(job_id, lock=True)
            self._require_status(job, JobStatus.PENDING_BIDS, "Bids can only be withdrawn while bidding is open")
            if not job.has_applicant(runner_id):
                raise InvalidStateTransition("You have not applied to this job")

            job.applicants = [a for a in job.applicants if a != runner_id]
            self.session.flush()
            events.append((job.id, APPLICANT_REMOVED, {"job_id": job.id, "runner_id": runner_id}))

        logger.info("Runner %s withdrew from job %s", runner_id, job_id)
        return job

    def choose_runner(self, job_id, requester_id, runner_id):
        with self._transition() as events:
            job = self._load_job(job_id)
            self._require_requester(job, requester_id)
            self._require_status(job, JobStatus.PENDING_BIDS, "Job is no longer open for bidding")
            if not job.has_applicant(runner_id):
                raise InvalidStateTransition("This runner has not applied or has withdrawn their bid")
            runner = self._load_user(runner_id, "Runner user not found")
            self.reputation.ensure_not_banned(runner, "This runner's account has been banned")

            job.runner_id = runner.id
            job.status = JobStatus.ACCEPTED
            job.runner_details_cache = runner.details_snapshot()
            job.applicants = []
            self.session.flush()
            events.append(self._job_updated(job))
            events.append((None, JOB_TAKEN, {"job_id": job.id}))

        logger.info("Requester %s chose runner %s for job %s", requester_id, runner_id, job_id)
        return job

    # ------------------------------------------------------------------
    # Fulfilment
    # ------------------------------------------------------------------
    def _advance(self, job_id, runner_id, required, new_status, message):
        with self._transition() as events:
            job = self._load_job(job_id)
            self._require_runner(job, runner_id)
            self._require_status(job, required, message)

            job.status = new_status
            self.session.flush()
            events.append(self._job_updated(job))

        logger.info("Job %s moved to %s by runner %s", job_id, new_status, runner_id)
        return job

    def mark_picked_up(self, job_id, runner_id):
        return self._advance(
            job_id, runner_id, JobStatus.ACCEPTED, JobStatus.PICKED_UP,
            'Job must be in "accepted" state to be picked up',
        )

    def mark_delivered(self, job_id, runner_id):
        return self._advance(
            job_id, runner_id, JobStatus.PICKED_UP, JobStatus.DELIVERED_BY_RUNNER,
            'Job must be in "picked_up" state to be delivered',
        )

    def cancel_delivery(self, job_id, runner_id):
        # TODO: refund the requester's fee and record a strike against the
        # runner once a refund path exists; today the job just ends here.
        return self._advance(
            job_id, runner_id, JobStatus.RUNNER_CANCELLABLE, JobStatus.CANCELLED,
            "Only accepted or picked-up jobs can be cancelled by the runner",
        )

    def confirm_delivery(self, job_id, requester_id):
        """Complete the job and release the fee to the runner's wallet."""
        with self._transition() as events:
            job = self._load_job(job_id)
            self._require_requester(job, requester_id)
            self._require_status(
                job, JobStatus.DELIVERED_BY_RUNNER,
                "Job has not been marked as delivered by the runner yet",
            )

            job.status = JobStatus.COMPLETED
            # Claim the transition before any money moves
            self.session.flush()

            new_balance = self.ledger.credit(job.runner_id, job.fee)
            self.reputation.record_completion(job.runner_id, job.requester_id)

            events.append(self._job_updated(job))
            events.append((None, BALANCE_CHANGED, {
                "user_id": job.runner_id,
                "new_balance": float(new_balance),
            }))
            fee, runner_id = job.fee, job.runner_id

        logger.info("Job %s confirmed; paid %.2f to runner %s", job_id, fee, runner_id)
        return job

    # ------------------------------------------------------------------
    # Reputation
    # ------------------------------------------------------------------
    def rate(self, job_id, requester_id, stars):
        with self._transition():
            job = self._load_job(job_id)
            self._require_requester(job, requester_id)
            self._require_status(job, JobStatus.COMPLETED, "Only completed jobs can be rated")
            if job.rating_given:
                raise AlreadyRated()
            if not job.runner_id:
                raise InvalidStateTransition("This job has no runner to rate")

            job.rating_given = True
            self.session.flush()
            self.reputation.record_rating(job.runner_id, stars)

        logger.info("Job %s rated %s stars", job_id, stars)
        return job

    def report(self, job_id, requester_id, reason=None):
        with self._transition() as events:
            job = self._load_job(job_id)
            self._require_requester(job, requester_id)
            if not job.runner_id:
                raise InvalidStateTransition("This job has no runner to report")

            runner_id = job.runner_id
            report_count, is_banned = self.reputation.record_report(runner_id)
            events.append((job.id, RUNNER_REPORTED, {
                "job_id": job.id,
                "report_count": report_count,
                "is_banned": is_banned,
            }))

        logger.info("Runner %s reported on job %s. Reason: %s", runner_id, job_id, reason)
        return {"report_count": report_count, "is_banned": is_banned}


def get_engine():
    """Engine bound to the current request's session, fan-out and policy."""
    from gatedrop.extensions import db
    from gatedrop.fanout import get_fanout
    from .policy import get_policy

    return JobLifecycleEngine(db.session, get_fanout(), get_policy())
