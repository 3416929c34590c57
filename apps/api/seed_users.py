#!/usr/bin/env python3
"""
Seed the default team accounts (admin, office users, one MR)
Run with: python seed_users.py
Safe to re-run: existing emails are left untouched.
"""

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlmodel import Session, select
from auth import get_password_hash
from config import Settings, configure_logging
from database import build_engine, create_db_and_tables
from models import User, Role
import logging

logger = logging.getLogger(__name__)

DEFAULT_USERS = [
    ("Umbra", "admin@aarezhealth.com", "admin123", Role.ADMIN),
    ("User One", "user1@aarezhealth.com", "user1234", Role.USER),
    ("User Two", "user2@aarezhealth.com", "user1234", Role.USER),
    ("User Three", "user3@aarezhealth.com", "user1234", Role.USER),
    ("Field MR", "mr@aarezhealth.com", "mr123456", Role.MR),
]


def seed_default_users(session: Session) -> int:
    """Insert missing default users; returns how many were created"""
    created = 0
    for name, email, password, role in DEFAULT_USERS:
        existing = session.exec(select(User).where(User.email == email)).first()
        if existing:
            logger.info(f"Exists: {email}")
            continue

        session.add(User(
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            role=role.value
        ))
        created += 1
        logger.info(f"Created: {email} ({role.value})")

    session.commit()
    return created


def seed(engine: Engine) -> int:
    create_db_and_tables(engine)
    with Session(engine) as session:
        return seed_default_users(session)


if __name__ == "__main__":
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings)
    count = seed(build_engine(settings))
    logger.info(f"Seeding complete, {count} user(s) created")
