"""
Reputation and moderation: rating aggregates and the report/ban threshold.
"""
import logging

from sqlalchemy import case, select, update

from gatedrop.errors import AccountBanned, NotFound, ValidationError
from gatedrop.models import User

logger = logging.getLogger(__name__)

MIN_STARS = 1
MAX_STARS = 5


class Reputation:

    def __init__(self, session, policy):
        self.session = session
        self.policy = policy

    def ensure_not_banned(self, user, message=None):
        if user.is_banned:
            raise AccountBanned(message)

    def record_rating(self, runner_id, stars):
        if not isinstance(stars, int) or isinstance(stars, bool) or not MIN_STARS <= stars <= MAX_STARS:
            raise ValidationError("Rating must be between {} and {} stars".format(MIN_STARS, MAX_STARS))

        result = self.session.execute(
            update(User)
            .where(User.id == runner_id)
            .values(
                total_rating_stars=User.total_rating_stars + stars,
                total_rating_count=User.total_rating_count + 1,
            )
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            raise NotFound("Runner user not found")

    def record_completion(self, runner_id, requester_id):
        """Count a finished delivery for both parties."""
        self.session.execute(
            update(User)
            .where(User.id == runner_id)
            .values(gigs_completed_as_runner=User.gigs_completed_as_runner + 1)
            .execution_options(synchronize_session="fetch")
        )
        self.session.execute(
            update(User)
            .where(User.id == requester_id)
            .values(gigs_posted_as_requester=User.gigs_posted_as_requester + 1)
            .execution_options(synchronize_session="fetch")
        )

    def record_report(self, runner_id):
        """
        Count one more report against a runner, banning them in the same
        statement once the count passes the threshold.

        Returns:
            tuple: (report_count, is_banned) after the update
        """
        threshold = self.policy.ban_report_threshold
        result = self.session.execute(
            update(User)
            .where(User.id == runner_id)
            .values(
                report_count=User.report_count + 1,
                is_banned=case(
                    (User.report_count + 1 > threshold, True),
                    else_=User.is_banned,
                ),
            )
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            raise NotFound("Runner user not found")

        report_count, is_banned = self.session.execute(
            select(User.report_count, User.is_banned).where(User.id == runner_id)
        ).one()
        if report_count == threshold + 1:
            logger.warning("User %s has been banned after %s reports", runner_id, report_count)
        return report_count, bool(is_banned)
