import logging

from visa_portal.config import settings
from visa_portal.database import Database
from visa_portal.models.admin import Admin
from visa_portal.services.password_service import hash_password

logger = logging.getLogger(__name__)


def seed_admin(db, username: str, password: str | None) -> Admin | None:
    existing = db.query(Admin).filter(Admin.username == username).first()
    if existing:
        logger.info("Admin %s already present, skipping seeding", username)
        return existing
    if not password:
        logger.info("SEED_ADMIN_PASSWORD not set, no admin seeded")
        return None
    if len(password) < 6:
        logger.warning("SEED_ADMIN_PASSWORD is shorter than 6 characters, no admin seeded")
        return None

    admin = Admin(username=username, password_hash=hash_password(password), is_active=True)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Default admin %s seeded", username)
    return admin


def run_seed(database: Database | None = None):
    database = database or Database(settings.DATABASE_URL)
    database.create_all()
    with database.session() as db:
        try:
            seed_admin(db, settings.SEED_ADMIN_USERNAME, settings.SEED_ADMIN_PASSWORD)
        except Exception:
            db.rollback()
            logger.exception("Seeding error")


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    run_seed()
