"""
Socket.IO event handlers.

- Authenticated connections (JWT in the auth payload or ?token=)
- Job rooms for parties and applicants
- Live runner location relay while a delivery is in progress
"""
import logging

from flask import request, session
from flask_socketio import ConnectionRefusedError, emit, leave_room

from gatedrop.auth import verify_token
from gatedrop.extensions import db, socketio
from gatedrop.fanout import LOCATION_UPDATE, get_fanout
from gatedrop.models import Job, JobStatus, User
from gatedrop.utils import safe_float

logger = logging.getLogger(__name__)

TRACKABLE_STATUSES = (JobStatus.ACCEPTED, JobStatus.PICKED_UP)


def _current_user_id():
    return session.get("user_id")


def _job_id(data):
    if not isinstance(data, dict):
        return None
    return data.get("job_id") or data.get("jobId")


def _error(message):
    emit("socket_error", {"error": message}, to=request.sid)


@socketio.on("connect")
def handle_connect(auth=None):
    token = None
    if isinstance(auth, dict):
        token = auth.get("token")
    token = token or request.args.get("token")

    user_id = verify_token(token)
    if not user_id or db.session.get(User, user_id) is None:
        logger.info("[socket] Rejected connection %s", request.sid)
        raise ConnectionRefusedError("unauthorized")

    session["user_id"] = user_id
    logger.debug("[socket] Client connected: %s (user %s)", request.sid, user_id)


@socketio.on("disconnect")
def handle_disconnect(*args):
    logger.debug("[socket] Client disconnected: %s", request.sid)


@socketio.on("join_job_room")
def handle_join_job_room(data):
    """data = { job_id } (or a bare job id string)"""
    job_id = data if isinstance(data, str) else _job_id(data)
    if not job_id:
        _error("job_id is required")
        return

    job = db.session.get(Job, job_id)
    user_id = _current_user_id()
    if job is None:
        _error("Job not found")
        return
    if not (job.is_party(user_id) or job.has_applicant(user_id)):
        _error("You are not allowed to follow this job")
        return

    get_fanout().join(request.sid, job_id)
    emit("joined", {"room": job_id}, to=request.sid)


@socketio.on("leave_job_room")
def handle_leave_job_room(data):
    job_id = data if isinstance(data, str) else _job_id(data)
    if job_id:
        leave_room(job_id)


@socketio.on("runner_location_update")
def handle_runner_location_update(data):
    """
    Relay the runner's GPS position to the job room. Nothing is stored.
    data = { job_id, location: { lat, lon } }
    """
    job_id = _job_id(data)
    location = data.get("location") if isinstance(data, dict) else None
    if not job_id or not isinstance(location, dict):
        _error("job_id and location are required")
        return

    lat = safe_float(location.get("lat"))
    lon = safe_float(location.get("lon"))
    if lat is None or lon is None:
        _error("location must contain numeric lat and lon")
        return

    job = db.session.get(Job, job_id)
    if job is None or job.runner_id != _current_user_id():
        _error("Only the assigned runner can share location for this job")
        return
    if job.status not in TRACKABLE_STATUSES:
        _error("Location is only shared while a delivery is in progress")
        return

    get_fanout().emit(
        job_id, LOCATION_UPDATE, {"job_id": job_id, "lat": lat, "lon": lon}, skip_sid=request.sid,
    )
