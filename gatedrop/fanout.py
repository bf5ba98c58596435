"""
Event fan-out.

The lifecycle engine publishes through the EventFanout interface and never
touches a transport directly. Delivery is best-effort and at-most-once:
nothing is queued or replayed, and a failed emit is logged and dropped so
it can never fail the transition that produced it.
"""
import logging

logger = logging.getLogger(__name__)

# Room-scoped events
JOB_UPDATED = "job_updated"
APPLICANT_ADDED = "applicant_added"
APPLICANT_REMOVED = "applicant_removed"
RUNNER_REPORTED = "runner_reported"
LOCATION_UPDATE = "location_update"

# Marketplace-wide events
JOB_CREATED = "job_created"
JOB_TAKEN = "job_taken"
BALANCE_CHANGED = "balance_changed"


class EventFanout:
    """Room-broadcast primitive the engine depends on."""

    def join(self, connection_id, room):
        raise NotImplementedError

    def emit(self, room, event, payload, skip_sid=None):
        """Send to every connection in ``room`` except ``skip_sid``."""
        raise NotImplementedError

    def broadcast(self, event, payload):
        raise NotImplementedError

    def publish(self, events):
        """
        Deliver a batch of (room, event, payload) tuples; room None means
        the global channel.
        """
        for room, event, payload in events:
            if room is None:
                self.broadcast(event, payload)
            else:
                self.emit(room, event, payload)


class SocketIOFanout(EventFanout):
    """EventFanout over a Flask-SocketIO server, default namespace."""

    def __init__(self, socketio, namespace="/"):
        self.socketio = socketio
        self.namespace = namespace

    def join(self, connection_id, room):
        try:
            self.socketio.server.enter_room(connection_id, room, namespace=self.namespace)
        except Exception as e:
            logger.warning("Could not add connection %s to room %s: %s", connection_id, room, e)

    def emit(self, room, event, payload, skip_sid=None):
        try:
            self.socketio.emit(event, payload, to=room, namespace=self.namespace, skip_sid=skip_sid)
        except Exception:
            logger.exception("Failed to emit %s to room %s", event, room)

    def broadcast(self, event, payload):
        try:
            self.socketio.emit(event, payload, namespace=self.namespace)
        except Exception:
            logger.exception("Failed to broadcast %s", event)


def get_fanout():
    """The fan-out registered on the current app by create_app()."""
    from flask import current_app

    return current_app.extensions["gatedrop.fanout"]
