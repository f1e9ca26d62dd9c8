"""
User Lifecycle
==============
Sign-up with KYC capture, login, admin read/update/verify/delete.

Identity fields (email, phone, aadhar_no, pan, account_number) are unique
across users; sign-up checks all of them with a single disjunctive query.
Passwords are bcrypt hashed and never logged.
"""

from typing import Any, Dict, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from astex.core.dates import coerce_date
from astex.core.errors import (
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from astex.core.logging import request_logger
from astex.core.security import create_access_token, hash_password, verify_password
from astex.db.models import User
from astex.schemas import SignUpRequest, UserUpdateRequest
from astex.services.audit import log_audit

REQUIRED_FIELDS = ("email", "password", "name", "phone")
IDENTITY_FIELDS = ("email", "phone", "aadhar_no", "pan", "account_number")
PROFILE_FIELDS = (
    "email", "name", "phone", "aadhar_no", "pan", "gender", "nominee_name",
    "nominee_relation", "bank_name", "account_number", "account_holder",
    "ifsc_code", "address",
)
NON_NULLABLE_FIELDS = ("email", "name", "phone", "password")


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def _find_identity_clash(self, values: Dict[str, Any], exclude_id: Optional[int] = None) -> Optional[User]:
        conditions = [
            getattr(User, field) == values[field]
            for field in IDENTITY_FIELDS
            if values.get(field)
        ]
        if not conditions:
            return None

        query = self.db.query(User).filter(or_(*conditions))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first()

    def sign_up(self, data: SignUpRequest) -> User:
        missing = [field for field in REQUIRED_FIELDS if not getattr(data, field, None)]
        if missing:
            raise ValidationError("Missing required fields")

        values = data.model_dump()
        if self._find_identity_clash(values):
            raise ConflictError("User with these details already exists")

        user = User(
            email=data.email,
            password_hash=hash_password(data.password),
            name=data.name,
            phone=data.phone,
            aadhar_no=data.aadhar_no or None,
            pan=data.pan or None,
            gender=data.gender,
            dob=coerce_date(data.dob),
            nominee_name=data.nominee_name,
            nominee_relation=data.nominee_relation,
            bank_name=data.bank_name,
            account_number=data.account_number or None,
            account_holder=data.account_holder,
            ifsc_code=data.ifsc_code,
            address=data.address,
        )

        try:
            self.db.add(user)
            self.db.flush()
            log_audit(self.db, "user_signed_up", {"email": user.email}, user_id=user.id)
            self.db.commit()
        except IntegrityError:
            # lost a race against a concurrent sign-up with the same details
            self.db.rollback()
            raise ConflictError("User with these details already exists")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        request_logger().info(f"User signed up: #{user.id} {user.email}")
        return user

    def authenticate(self, email: str, password: str) -> Tuple[User, str]:
        user = self.db.query(User).filter(User.email == email).first()
        if not user or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid credentials")

        token = create_access_token({
            "user_id": user.id,
            "email": user.email,
            "role": user.role.value,
        })
        request_logger().info(f"User logged in: #{user.id}")
        return user, token

    def get(self, user_id: int) -> User:
        user = (
            self.db.query(User)
            .options(
                selectinload(User.transactions),
                selectinload(User.orders),
                selectinload(User.loan_request),
            )
            .filter(User.id == user_id)
            .first()
        )
        if not user:
            raise NotFoundError("User not found")
        return user

    def verify(self, user_id: int) -> Tuple[User, bool]:
        """Mark the user verified. Returns (user, changed); re-verifying is a no-op."""
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        if user.is_verified:
            return user, False

        try:
            user.is_verified = True
            log_audit(self.db, "user_verified", {"user_id": user.id}, user_id=user.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        request_logger().info(f"User #{user.id} verified")
        return user, True

    def update(self, user_id: int, data: UserUpdateRequest) -> User:
        fields = data.model_dump(exclude_unset=True)

        nulled = [field for field in NON_NULLABLE_FIELDS if field in fields and fields[field] is None]
        if nulled:
            raise ValidationError(f"Fields cannot be null: {', '.join(nulled)}")

        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")

        if self._find_identity_clash(fields, exclude_id=user.id):
            raise ConflictError("User with these details already exists")

        try:
            for field in PROFILE_FIELDS:
                if field in fields:
                    value = fields[field]
                    if field in IDENTITY_FIELDS and value == "":
                        value = None
                    setattr(user, field, value)
            if "dob" in fields:
                user.dob = coerce_date(fields["dob"])
            if "password" in fields:
                user.password_hash = hash_password(fields["password"])

            log_audit(self.db, "user_updated", {
                "user_id": user.id,
                "fields": sorted(f for f in fields if f != "password"),
            }, user_id=user.id)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("User with these details already exists")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        request_logger().info(f"User #{user.id} updated")
        return user

    def delete(self, user_id: int) -> None:
        """Hard delete; transactions, orders and the loan request go with the user"""
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")

        try:
            log_audit(self.db, "user_deleted", {"user_id": user_id, "email": user.email})
            self.db.delete(user)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        request_logger().info(f"User #{user_id} deleted")
