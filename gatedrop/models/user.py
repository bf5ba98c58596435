"""User model"""
from decimal import Decimal

from werkzeug.security import generate_password_hash, check_password_hash

from gatedrop.extensions import db
from .base import BaseModel


class User(BaseModel):
    """
    User model - a single account acts as requester on some jobs and
    runner on others.

    Wallet and reputation columns are only ever changed through
    gatedrop.services (Ledger and Reputation), never by request handlers.
    """
    __tablename__ = 'users'

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(20), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    college_id = db.Column(db.String(100))
    profile_image_url = db.Column(db.Text)

    wallet_balance = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal('0.00'))

    # Reputation counters
    gigs_completed_as_runner = db.Column(db.Integer, nullable=False, default=0)
    gigs_posted_as_requester = db.Column(db.Integer, nullable=False, default=0)
    report_count = db.Column(db.Integer, nullable=False, default=0)
    is_banned = db.Column(db.Boolean, nullable=False, default=False)
    total_rating_stars = db.Column(db.Integer, nullable=False, default=0)
    total_rating_count = db.Column(db.Integer, nullable=False, default=0)

    # Payout destination, stored only
    upi_id = db.Column(db.String(100))
    bank_account = db.Column(db.JSON)  # {account_number, ifsc, beneficiary_name}

    __table_args__ = (
        db.CheckConstraint('wallet_balance >= 0', name='ck_users_wallet_non_negative'),
    )

    def __repr__(self):
        return f'<User {self.email}>'

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password against hash"""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def average_rating(self):
        if not self.total_rating_count:
            return 0.0
        return round(self.total_rating_stars / self.total_rating_count, 2)

    def details_snapshot(self):
        """Name and phone as cached on jobs at creation/assignment time"""
        return {'name': self.name, 'phone': self.phone}

    def public_profile(self):
        """Fields other users may see (applicant lists, profile lookups)"""
        return {
            'id': self.id,
            'name': self.name,
            'profile_image_url': self.profile_image_url,
            'gigs_completed_as_runner': self.gigs_completed_as_runner,
            'gigs_posted_as_requester': self.gigs_posted_as_requester,
            'average_rating': self.average_rating,
            'total_rating_count': self.total_rating_count,
            'is_banned': self.is_banned,
        }

    def to_dict(self, include_private=False):
        """Convert to dictionary; the password hash is never included"""
        exclude = ['password_hash']
        if not include_private:
            exclude.extend(['wallet_balance', 'upi_id', 'bank_account', 'report_count'])

        data = super().to_dict(exclude=exclude)
        data['average_rating'] = self.average_rating
        return data
