"""
Wallet route tests
"""
import json
from decimal import Decimal

from gatedrop.extensions import db
from gatedrop.fanout import BALANCE_CHANGED
from gatedrop.models import User


class TestBalance:

    def test_new_user_has_empty_wallet(self, client, runner, auth_headers):
        response = client.get('/api/wallet/balance', headers=auth_headers(runner))

        assert response.status_code == 200
        assert json.loads(response.data)['balance'] == 0

    def test_balance_requires_auth(self, client):
        assert client.get('/api/wallet/balance').status_code == 401


class TestCashout:

    def test_cashout_more_than_balance_then_within(self, client, fanout, user_factory, auth_headers):
        """Balance 150: 200 is refused and nothing moves; 120 leaves 30"""
        user = user_factory(wallet_balance=150)
        headers = auth_headers(user)

        response = client.post('/api/wallet/cashout', headers=headers, json={'amount': 200})
        assert response.status_code == 400
        assert json.loads(response.data)['code'] == 'insufficient_funds'
        assert db.session.get(User, user.id).wallet_balance == 150
        assert fanout.events == []

        response = client.post('/api/wallet/cashout', headers=headers, json={'amount': 120})
        assert response.status_code == 200
        assert json.loads(response.data)['new_balance'] == 30

        db.session.expire_all()
        assert db.session.get(User, user.id).wallet_balance == 30
        assert fanout.of(BALANCE_CHANGED) == [(None, {'user_id': user.id, 'new_balance': 30})]

    def test_cashout_below_minimum(self, client, user_factory, auth_headers):
        user = user_factory(wallet_balance=500)

        response = client.post('/api/wallet/cashout', headers=auth_headers(user), json={'amount': 50})

        assert response.status_code == 400
        assert json.loads(response.data)['code'] == 'below_minimum'

    def test_cashout_requires_numeric_amount(self, client, user_factory, auth_headers):
        user = user_factory(wallet_balance=500)

        response = client.post('/api/wallet/cashout', headers=auth_headers(user), json={'amount': 'lots'})

        assert response.status_code == 400
        assert json.loads(response.data)['code'] == 'validation_error'

    def test_cashout_negative_amount(self, client, user_factory, auth_headers):
        user = user_factory(wallet_balance=500)

        response = client.post('/api/wallet/cashout', headers=auth_headers(user), json={'amount': -150})

        assert response.status_code == 400
        db.session.expire_all()
        assert db.session.get(User, user.id).wallet_balance == 500

    def test_cashout_whole_balance_in_cents(self, client, user_factory, auth_headers):
        user = user_factory(wallet_balance=Decimal('100.01'))

        response = client.post('/api/wallet/cashout', headers=auth_headers(user), json={'amount': '100.01'})

        assert response.status_code == 200
        assert json.loads(response.data)['new_balance'] == 0
