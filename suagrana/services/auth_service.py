import logging
import re
import secrets
from sqlalchemy.orm import Session

from suagrana.core.exceptions import ConflictException, UnauthorizedException
from suagrana.core.security import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    extract_user_id,
    hash_password,
    verify_password,
)
from suagrana.models.base import utcnow
from suagrana.models.role import TenantRole
from suagrana.models.tenant import Tenant
from suagrana.models.tenant_membership import TenantMembership
from suagrana.models.user import User
from suagrana.repositories.tenant_membership_repository import TenantMembershipRepository
from suagrana.repositories.tenant_repository import TenantRepository
from suagrana.repositories.user_repository import UserRepository
from suagrana.schemas.auth_schemas import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
)

logger = logging.getLogger(__name__)


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug[:80] or "tenant"


class AuthService:
    """Registration, login and token lifecycle"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)
        self.tenant_repo = TenantRepository(db)
        self.membership_repo = TenantMembershipRepository(db)

    def issue_tokens(self, user: User) -> tuple[str, str]:
        """Returns (access_token, refresh_token)"""
        return create_access_token(user.id), create_refresh_token(user.id)

    def unique_slug(self, name: str) -> str:
        base = slugify(name)
        slug = base
        while self.tenant_repo.slug_exists(slug):
            slug = f"{base}-{secrets.token_hex(3)}"
        return slug

    def register(self, data: RegisterRequest) -> User:
        """
        Create a user together with a personal tenant they own.

        Raises:
            ConflictException: If the email is already registered
        """
        email = data.email.lower()
        if self.user_repo.get_by_email(email):
            raise ConflictException("Email already registered")

        try:
            user = self.user_repo.create_no_commit(
                User(email=email, name=data.name, password_hash=hash_password(data.password))
            )
            tenant_name = f"{data.name}'s finances"
            tenant = self.tenant_repo.create_no_commit(
                Tenant(name=tenant_name, slug=self.unique_slug(data.name), settings={})
            )
            self.membership_repo.create_no_commit(
                TenantMembership(tenant_id=tenant.id, user_id=user.id, role=TenantRole.OWNER)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        logger.info("User registered user_id=%s tenant_id=%s", user.id, tenant.id)
        return user

    def authenticate(self, data: LoginRequest) -> User:
        """
        Check credentials and stamp last_login_at.

        Unknown email, wrong password and inactive user all produce the same
        error so the response does not reveal which accounts exist.
        """
        user = self.user_repo.get_by_email(data.email)
        if not user or not user.is_active or not verify_password(data.password, user.password_hash):
            logger.warning("Failed login for email=%s", data.email)
            raise UnauthorizedException("Invalid email or password")

        user.last_login_at = utcnow()
        user = self.user_repo.update(user)
        logger.info("User logged in user_id=%s", user.id)
        return user

    def refresh(self, refresh_token: str | None) -> User:
        if not refresh_token:
            raise UnauthorizedException("Refresh token required")

        user_id = extract_user_id(refresh_token, expected_type=REFRESH_TOKEN)
        user = self.user_repo.get_by_id(user_id)
        if not user or not user.is_active:
            raise UnauthorizedException("User not found")
        return user

    def update_profile(self, user: User, data: ProfileUpdate) -> User:
        updates = data.model_dump(exclude_unset=True)
        if updates.get("name"):
            user.name = updates["name"].strip()
        if "avatar" in updates:
            user.avatar = updates["avatar"]
        return self.user_repo.update(user)

    def change_password(self, user: User, data: ChangePasswordRequest) -> None:
        if not verify_password(data.current_password, user.password_hash):
            logger.warning("Password change rejected user_id=%s", user.id)
            raise UnauthorizedException("Current password is incorrect")

        user.password_hash = hash_password(data.new_password)
        self.user_repo.update(user)
        logger.info("Password changed user_id=%s", user.id)

    def list_tenants(self, user: User) -> list[dict]:
        return [
            {
                "id": m.tenant.id,
                "name": m.tenant.name,
                "slug": m.tenant.slug,
                "role": m.role,
            }
            for m in self.membership_repo.get_user_memberships(user.id)
        ]
