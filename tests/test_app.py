"""
Application-level tests: factory wiring, error responses, headers and the
Socket.IO fan-out's failure handling
"""
import json
import logging
from decimal import Decimal

from gatedrop.fanout import EventFanout, SocketIOFanout
from gatedrop.middleware import RequestIdFilter


class TestAppFactory:

    def test_policy_from_config(self, app):
        policy = app.extensions['gatedrop.policy']

        assert policy.min_job_fee == Decimal('30.00')
        assert policy.min_cashout_amount == Decimal('100.00')
        assert policy.ban_report_threshold == 2

    def test_default_fanout_is_socketio(self, app):
        assert isinstance(app.extensions['gatedrop.fanout'], SocketIOFanout)


class TestHttpBehaviour:

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert json.loads(response.data)['status'] == 'healthy'

    def test_security_headers(self, client):
        response = client.get('/health')

        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['X-Frame-Options'] == 'DENY'

    def test_request_id_generated(self, client):
        response = client.get('/health')

        assert response.headers.get('X-Request-ID')

    def test_request_id_echoed(self, client):
        response = client.get('/health', headers={'X-Request-ID': 'trace-123'})

        assert response.headers['X-Request-ID'] == 'trace-123'

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/nothing-here')

        assert response.status_code == 404
        assert 'error' in json.loads(response.data)

    def test_wrong_method_is_json(self, client):
        response = client.delete('/api/jobs/available')

        assert response.status_code == 405
        assert 'error' in json.loads(response.data)

    def test_request_id_on_log_records(self, app):
        record = logging.LogRecord('gatedrop', logging.INFO, __file__, 1, 'hello', None, None)

        with app.test_request_context('/', environ_base={'request_id': 'req-42'}):
            RequestIdFilter().filter(record)

        assert record.request_id == 'req-42'


class ExplodingSocketIO:

    class server:
        @staticmethod
        def enter_room(*args, **kwargs):
            raise RuntimeError('transport down')

    def emit(self, *args, **kwargs):
        raise RuntimeError('transport down')


class TestFanout:

    def test_socketio_failures_are_swallowed(self, caplog):
        fanout = SocketIOFanout(ExplodingSocketIO())

        with caplog.at_level(logging.WARNING):
            fanout.join('sid-1', 'job-1')
            fanout.publish([('job-1', 'job_updated', {}), (None, 'job_taken', {})])

        assert 'Failed to emit job_updated' in caplog.text
        assert 'Failed to broadcast job_taken' in caplog.text

    def test_publish_routes_by_room(self):
        sent = []

        class Collecting(EventFanout):
            def emit(self, room, event, payload):
                sent.append(('room', room, event))

            def broadcast(self, event, payload):
                sent.append(('all', None, event))

        Collecting().publish([('j1', 'applicant_added', {}), (None, 'job_created', {})])

        assert sent == [('room', 'j1', 'applicant_added'), ('all', None, 'job_created')]

    def test_emit_can_skip_the_sender(self):
        calls = []

        class CollectingSocketIO:
            def emit(self, *args, **kwargs):
                calls.append((args, kwargs))

        SocketIOFanout(CollectingSocketIO()).emit('job-1', 'location_update', {'lat': 1}, skip_sid='sid-7')

        assert calls == [(
            ('location_update', {'lat': 1}),
            {'to': 'job-1', 'namespace': '/', 'skip_sid': 'sid-7'},
        )]
