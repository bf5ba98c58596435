"""
Job routes: posting, bidding, fulfilment and reputation actions.

Handlers parse the body into a command and hand it to the lifecycle engine;
guard failures come back as GatedropError and are rendered by the app-wide
error handler.
"""
from flask import Blueprint, jsonify, request

from gatedrop import commands
from gatedrop.auth import require_auth
from gatedrop.errors import Unauthorized
from gatedrop.extensions import db
from gatedrop.models import Job, User
from gatedrop.services import get_engine

jobs_bp = Blueprint('jobs', __name__, url_prefix='/api/jobs')


def _job_response(job, status=200):
    return jsonify({'success': True, 'job': job.to_dict()}), status


def _job_list(query):
    return jsonify({'success': True, 'jobs': [job.to_dict() for job in query.all()]}), 200


# MARK: - Listings

@jobs_bp.route('/available', methods=['GET'])
@require_auth
def available_jobs(user_id):
    """Open jobs the caller can bid on"""
    return _job_list(Job.available_for(user_id))


@jobs_bp.route('/my-posted', methods=['GET'])
@require_auth
def my_posted_jobs(user_id):
    return _job_list(Job.posted_by(user_id))


@jobs_bp.route('/my-runner', methods=['GET'])
@require_auth
def my_runner_jobs(user_id):
    return _job_list(Job.run_by(user_id))


@jobs_bp.route('/history', methods=['GET'])
@require_auth
def job_history(user_id):
    return _job_list(Job.history_for(user_id))


@jobs_bp.route('/<job_id>', methods=['GET'])
@require_auth
def get_job(user_id, job_id):
    job = Job.get_or_404(job_id, 'Job not found')
    if not job.can_view(user_id):
        raise Unauthorized('You are not allowed to view this job')
    return _job_response(job)


@jobs_bp.route('/<job_id>/applicants', methods=['GET'])
@require_auth
def list_applicants(user_id, job_id):
    """Public profiles of everyone currently bidding, for the requester to choose from"""
    job = Job.get_or_404(job_id, 'Job not found')
    if job.requester_id != user_id:
        raise Unauthorized('Only the requester can see applicants')

    applicant_ids = list(job.applicants or [])
    users = {}
    if applicant_ids:
        users = {u.id: u for u in User.query.filter(User.id.in_(applicant_ids)).all()}
    applicants = [users[a].public_profile() for a in applicant_ids if a in users]
    return jsonify({'success': True, 'applicants': applicants}), 200


# MARK: - Lifecycle

@jobs_bp.route('', methods=['POST'])
@require_auth
def create_job(user_id):
    """
    Post a new delivery job
    POST /api/jobs
    """
    command = commands.CreateJob.from_request(user_id, request.get_json(silent=True))
    job = get_engine().handle(command)
    return _job_response(job, 201)


@jobs_bp.route('/<job_id>/apply', methods=['POST'])
@require_auth
def apply_to_job(user_id, job_id):
    job = get_engine().handle(commands.Apply(job_id=job_id, runner_id=user_id))
    return _job_response(job)


@jobs_bp.route('/<job_id>/cancel-bid', methods=['POST'])
@require_auth
def cancel_bid(user_id, job_id):
    job = get_engine().handle(commands.CancelBid(job_id=job_id, runner_id=user_id))
    return _job_response(job)


@jobs_bp.route('/<job_id>/choose-runner', methods=['POST'])
@require_auth
def choose_runner(user_id, job_id):
    """
    Assign one applicant as the runner
    POST /api/jobs/:id/choose-runner
    Body: {"runner_id": "<user id>"}
    """
    command = commands.ChooseRunner.from_request(job_id, user_id, request.get_json(silent=True))
    job = get_engine().handle(command)
    return _job_response(job)


@jobs_bp.route('/<job_id>/status', methods=['PATCH'])
@require_auth
def update_status(user_id, job_id):
    """
    Runner progress update
    PATCH /api/jobs/:id/status
    Body: {"status": "picked_up" | "delivered_by_runner"}
    """
    command = commands.status_update_from_request(job_id, user_id, request.get_json(silent=True))
    job = get_engine().handle(command)
    return _job_response(job)


@jobs_bp.route('/<job_id>/confirm', methods=['POST'])
@require_auth
def confirm_delivery(user_id, job_id):
    job = get_engine().handle(commands.ConfirmDelivery(job_id=job_id, requester_id=user_id))
    return _job_response(job)


@jobs_bp.route('/<job_id>/cancel-delivery', methods=['POST'])
@require_auth
def cancel_delivery(user_id, job_id):
    job = get_engine().handle(commands.CancelDelivery(job_id=job_id, runner_id=user_id))
    return _job_response(job)


@jobs_bp.route('/<job_id>/rate', methods=['POST'])
@require_auth
def rate_runner(user_id, job_id):
    """
    Rate the runner of a completed job
    Body: {"rating": 1-5}
    """
    command = commands.Rate.from_request(job_id, user_id, request.get_json(silent=True))
    job = get_engine().handle(command)
    runner = db.session.get(User, job.runner_id)
    return jsonify({
        'success': True,
        'job': job.to_dict(),
        'runner': runner.public_profile() if runner else None,
    }), 200


@jobs_bp.route('/<job_id>/report', methods=['POST'])
@require_auth
def report_runner(user_id, job_id):
    """
    Report the runner assigned to a job
    Body: {"reason": "..."}  (optional)
    """
    command = commands.Report.from_request(job_id, user_id, request.get_json(silent=True))
    result = get_engine().handle(command)
    return jsonify({'success': True, **result}), 200
