"""Service for user profile creation."""

import logging

from sqlalchemy.orm import Session

from models import UserProfile
from services.errors import ValidationError

logger = logging.getLogger(__name__)


class UserProfileService:
    """Creates user profiles on first sign-in."""

    @staticmethod
    def get_or_create(db: Session, user_id: str, email: str) -> tuple[UserProfile, bool]:
        """Return the user's profile, creating an empty one if needed.

        A new profile also marks the user as having an (empty) portfolio.

        Returns:
            (profile, created)
        """
        user_id = (user_id or "").strip()
        email = (email or "").strip()
        if not user_id or not email:
            raise ValidationError("userId and email are required")

        profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
        if profile is not None:
            return profile, False

        profile = UserProfile(user_id=user_id, email=email)
        db.add(profile)
        db.flush()
        logger.info("Created user profile for %s", user_id)
        return profile, True
