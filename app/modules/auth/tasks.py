"""
Background tasks for authentication module
"""
from datetime import datetime, timedelta, timezone

from app.core.celery import celery_app
from app.core.config import settings
from app.database.database import SessionLocal
from app.modules.auth.models import RevokedToken, EmailVerificationToken, PasswordResetToken
import logging

logger = logging.getLogger(__name__)


def purge_expired_tokens(db) -> dict:
    """Elimina tokens revocados ya expirados y links de verificación/reseteo vencidos."""
    now = datetime.now(timezone.utc)

    revoked = db.query(RevokedToken).filter(RevokedToken.expires_at < now).delete(synchronize_session=False)
    verifications = db.query(EmailVerificationToken).filter(
        EmailVerificationToken.created_at < now - timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS)
    ).delete(synchronize_session=False)
    resets = db.query(PasswordResetToken).filter(
        PasswordResetToken.created_at < now - timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    ).delete(synchronize_session=False)
    db.commit()

    return {"revoked": revoked, "email_verifications": verifications, "password_resets": resets}


@celery_app.task(bind=True, max_retries=3)
def cleanup_expired_tokens(self):
    """
    Periodic task to cleanup expired tokens
    """
    db = SessionLocal()
    try:
        logger.info("Starting cleanup of expired tokens")
        result = purge_expired_tokens(db)
        logger.info(f"Token cleanup completed: {result}")
        return {"status": "success", **result}

    except Exception as exc:
        db.rollback()
        logger.error(f"Token cleanup failed: {str(exc)}")
        raise self.retry(exc=exc, countdown=300)
    finally:
        db.close()
