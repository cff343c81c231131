"""Authentication service for JWT and password handling."""

import uuid
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from sentinel.config import get_settings
from sentinel.models.enums import Role
from sentinel.models.tenant import Tenant
from sentinel.models.user import User

settings = get_settings()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(user_id: uuid.UUID, email: str, tenant_id: uuid.UUID) -> str:
    """Create a JWT access token."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_expiration_minutes)
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "tenant": str(tenant_id),
        "exp": expire,
    }
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return payload
    except JWTError:
        return None


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email."""
    return db.query(User).filter(User.email == email.lower()).first()


def create_user(
    db: Session,
    tenant_id: uuid.UUID,
    email: str,
    password: str,
    name: str | None = None,
    role: Role = Role.EMPLOYEE,
    **profile,
) -> User:
    """Create a new user inside a tenant."""
    user = User(
        tenant_id=tenant_id,
        email=email.lower(),
        password_hash=get_password_hash(password),
        name=name,
        role=role,
        **profile,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_tenant_with_admin(
    db: Session, tenant_name: str, email: str, password: str, name: str | None = None
) -> User:
    """Register an organization together with its first administrator."""
    tenant = Tenant(name=tenant_name)
    db.add(tenant)
    db.flush()
    return create_user(db, tenant.id, email, password, name=name, role=Role.ADMIN)
