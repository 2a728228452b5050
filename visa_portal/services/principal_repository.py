from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from visa_portal.models.admin import Admin
from visa_portal.models.user import User
from visa_portal.utils.errors import NotFoundError, ValidationError

USER_UPDATABLE_FIELDS = {
    "name",
    "email",
    "phone",
    "passport_number",
    "appointment_details",
    "payment_status",
    "payment_id",
    "appointment_slip_path",
}


class PrincipalRepository:
    """Lookup and mutation of users and admins over one session."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, principal_id: int, principal_type: str) -> User | Admin | None:
        if principal_type == "user":
            return self.db.query(User).filter(User.id == principal_id).first()
        if principal_type == "admin":
            return (
                self.db.query(Admin)
                .filter(Admin.id == principal_id, Admin.is_active == True)  # noqa: E712
                .first()
            )
        return None

    def find_user_by_phone(self, phone: str) -> User | None:
        return self.db.query(User).filter(User.phone == phone).first()

    def find_admin_by_username(self, username: str) -> Admin | None:
        return self.db.query(Admin).filter(Admin.username == username).first()

    def create_user(self, draft: dict[str, Any]) -> User:
        user = User(
            name=draft.get("name", ""),
            email=draft.get("email", ""),
            phone=draft["phone"],
            passport_number=draft.get("passport_number", ""),
            appointment_details=draft.get("appointment_details") or {},
            payment_status=draft.get("payment_status", "pending"),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def find_or_create_user(self, phone: str) -> tuple[User, bool]:
        user = self.find_user_by_phone(phone)
        if user:
            return user, False
        return self.create_user({"phone": phone}), True

    def update_user(self, user_id: int, patch: dict[str, Any], commit: bool = True) -> User:
        unknown = set(patch) - USER_UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        for field, value in patch.items():
            setattr(user, field, value)
        user.updated_at = datetime.utcnow()
        if commit:
            self.db.commit()
            self.db.refresh(user)
        return user

    def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        payment_status: str | None = None,
        search: str | None = None,
    ) -> dict[str, Any]:
        query = self.db.query(User)
        if payment_status:
            query = query.filter(User.payment_status == payment_status)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(
                User.name.ilike(term) | User.email.ilike(term) | User.phone.ilike(term)
            )

        total_count = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        total_pages = (total_count + limit - 1) // limit
        return {
            "users": users,
            "pagination": {
                "page": page,
                "limit": limit,
                "total_count": total_count,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        }
