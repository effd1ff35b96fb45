from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from propledger.errors import AppError
from propledger.extensions import bcrypt, db
from propledger.models import Agency, User

STAFF_ROLES = {"admin", "manager"}


class AuthService:
    @staticmethod
    def register_user(agency_id, full_name, email, password, role):
        if role not in STAFF_ROLES:
            raise AppError("Invalid role.", 400)

        normalized_email = (email or "").strip().lower()
        if not (full_name or "").strip() or not normalized_email or not password:
            raise AppError("Name, email, and password are required.", 400)
        if len(password) < 8:
            raise AppError("Password must be at least 8 characters.", 400)
        if not db.session.get(Agency, agency_id):
            raise AppError("Agency not found.", 404)

        existing = User.query.filter_by(email=normalized_email).first()
        if existing:
            raise AppError("Email already registered.", 409)

        user = User(
            agency_id=agency_id,
            full_name=full_name.strip(),
            email=normalized_email,
            role=role,
            password_hash=bcrypt.generate_password_hash(password).decode("utf-8"),
        )
        try:
            db.session.add(user)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise AppError("Email already registered.", 409) from exc
        return user

    @staticmethod
    def authenticate_user(email, password):
        user = User.query.filter_by(email=(email or "").strip().lower()).first()
        if not user:
            raise AppError("Invalid credentials.", 401)

        try:
            is_valid = bcrypt.check_password_hash(user.password_hash, password or "")
        except ValueError:
            is_valid = False

        if not is_valid:
            raise AppError("Invalid credentials.", 401)
        if not user.is_active_user:
            raise AppError("User account is inactive.", 403)
        user.last_login = datetime.now(timezone.utc)
        db.session.commit()
        return user
