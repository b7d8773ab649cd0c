"""
Lazy creation of profile rows for authenticated identities.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from jobscout.core.auth_dependency import AuthIdentity
from jobscout.core.errors import ProfileCreationFailed
from jobscout.db.models.user import User
from jobscout.db.repositories import UserRepository

logger = logging.getLogger(__name__)


def derive_display_name(identity: AuthIdentity) -> str:
    """Full name from provider metadata, else the local part of the email."""
    if identity.full_name:
        return identity.full_name
    if identity.email:
        return identity.email.split("@")[0]
    return ""


def ensure_user_exists(users: UserRepository, identity: AuthIdentity) -> User:
    """
    Make sure a profile row exists for the identity.
    
    Concurrent first requests for the same identity may both try to insert;
    the loser gets an IntegrityError, which is treated as "already exists".
    
    Raises:
        ProfileCreationFailed: the insert failed for any other reason
    """
    try:
        existing = users.get(identity.id)
    except SQLAlchemyError as e:
        users.rollback()
        logger.error(f"Error loading user profile: user_id={identity.id}, error={e}", exc_info=True)
        raise ProfileCreationFailed() from e

    if existing is not None:
        return existing

    user = User(
        id=identity.id,
        email=identity.email or "",
        name=derive_display_name(identity),
        avatar_url=identity.avatar_url,
    )
    try:
        created = users.add(user)
    except IntegrityError:
        users.rollback()
        logger.info(f"User profile already created by a concurrent request: user_id={identity.id}")
        existing = users.get(identity.id)
        if existing is None:
            raise ProfileCreationFailed()
        return existing
    except SQLAlchemyError as e:
        users.rollback()
        logger.error(f"Error creating user profile: user_id={identity.id}, error={e}", exc_info=True)
        raise ProfileCreationFailed() from e

    logger.info(f"User profile created: user_id={created.id}")
    return created
