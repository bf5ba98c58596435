"""
User profile route tests
"""
import json

from gatedrop.extensions import db
from gatedrop.models import User


class TestPublicProfile:

    def test_public_profile(self, client, requester, user_factory, auth_headers):
        runner = user_factory(total_rating_stars=9, total_rating_count=2, gigs_completed_as_runner=2,
                              wallet_balance=300, upi_id='runner@okbank')

        response = client.get(f'/api/users/{runner.id}', headers=auth_headers(requester))

        assert response.status_code == 200
        user = json.loads(response.data)['user']
        assert user['average_rating'] == 4.5
        assert user['gigs_completed_as_runner'] == 2
        for private in ('wallet_balance', 'upi_id', 'phone', 'email', 'password_hash'):
            assert private not in user

    def test_unknown_user(self, client, requester, auth_headers):
        response = client.get('/api/users/nobody', headers=auth_headers(requester))

        assert response.status_code == 404


class TestUpdateProfile:

    def test_update_profile_fields(self, client, runner, auth_headers):
        response = client.patch('/api/users/profile', headers=auth_headers(runner), json={
            'name': 'Arjun K',
            'college_id': 'EE-2022-017',
            'upi_id': 'arjun@okaxis',
            'bank_account': {
                'account_number': '123456789012',
                'ifsc': 'sbin0001234',
                'beneficiary_name': 'Arjun K',
            },
        })

        assert response.status_code == 200
        user = json.loads(response.data)['user']
        assert user['name'] == 'Arjun K'
        assert user['upi_id'] == 'arjun@okaxis'
        assert user['bank_account']['ifsc'] == 'SBIN0001234'

    def test_wallet_and_reputation_are_not_writable(self, client, runner, auth_headers):
        response = client.patch('/api/users/profile', headers=auth_headers(runner), json={
            'wallet_balance': 10000,
            'is_banned': False,
            'report_count': 0,
            'total_rating_stars': 500,
            'name': 'Still Arjun',
        })

        assert response.status_code == 200
        db.session.expire_all()
        user = db.session.get(User, runner.id)
        assert user.wallet_balance == 0
        assert user.total_rating_stars == 0
        assert user.name == 'Still Arjun'

    def test_invalid_upi_id(self, client, runner, auth_headers):
        response = client.patch('/api/users/profile', headers=auth_headers(runner), json={'upi_id': 'not a upi'})

        assert response.status_code == 400

    def test_invalid_bank_account(self, client, runner, auth_headers):
        response = client.patch('/api/users/profile', headers=auth_headers(runner), json={
            'bank_account': {'account_number': '12', 'ifsc': 'XXXX', 'beneficiary_name': ''},
        })

        assert response.status_code == 400

    def test_empty_name_rejected(self, client, runner, auth_headers):
        response = client.patch('/api/users/profile', headers=auth_headers(runner), json={'name': '   '})

        assert response.status_code == 400
