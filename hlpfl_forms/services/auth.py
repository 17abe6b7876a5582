"""User accounts: password hashing, registration and credential checks."""

import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from hlpfl_forms.core.exceptions import AuthError, ConflictError, ValidationError
from hlpfl_forms.services.validation import sanitize_input, validate_password_strength

logger = logging.getLogger(__name__)

# Argon2 password hasher with recommended parameters
# Memory: 64 MiB, Time: 3 iterations, Parallelism: 4
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)

USERNAME_MIN_LENGTH = 3
DEFAULT_ROLE = "user"
DEFAULT_PERMISSIONS = ("read", "write")


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison."""
    try:
        ph.verify(password_hash, password)
        return True
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


@dataclass
class User:
    id: int
    username: str
    email: str
    password_hash: str
    role: str = DEFAULT_ROLE
    permissions: list[str] = field(default_factory=lambda: list(DEFAULT_PERMISSIONS))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def public(self) -> dict[str, Any]:
        """Fields safe to return to clients."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
        }

    def token_claims(self) -> dict[str, Any]:
        return {"username": self.username, "role": self.role}


class UserStore(Protocol):
    async def get_by_username(self, username: str) -> User | None:
        ...

    async def get_by_id(self, user_id: int) -> User | None:
        ...

    async def create(self, username: str, email: str, password_hash: str) -> User:
        """Create a user. Raises ConflictError if the username is taken."""
        ...


class MemoryUserStore:
    """In-process user table with sequential ids."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: dict[int, User] = {}
        self._by_username: dict[str, User] = {}
        self._next_id = 1

    async def get_by_username(self, username: str) -> User | None:
        with self._lock:
            return self._by_username.get(username)

    async def get_by_id(self, user_id: int) -> User | None:
        with self._lock:
            return self._by_id.get(user_id)

    async def create(self, username: str, email: str, password_hash: str) -> User:
        with self._lock:
            if username in self._by_username:
                raise ConflictError(
                    "Username already exists", "Please choose a different username."
                )
            user = User(
                id=self._next_id,
                username=username,
                email=email,
                password_hash=password_hash,
            )
            self._next_id += 1
            self._by_id[user.id] = user
            self._by_username[username] = user
            return user


class AuthService:
    """Registration and credential checks on top of a user store."""

    def __init__(self, users: UserStore):
        self.users = users

    async def register(self, username: str, password: str, email: str) -> User:
        username = sanitize_input(username)
        email = sanitize_input(email)

        if not username or not password or not email:
            raise ValidationError(
                "Missing required fields", "Username, password, and email are required."
            )
        if len(username) < USERNAME_MIN_LENGTH:
            raise ValidationError(
                "Invalid username",
                f"Username must be at least {USERNAME_MIN_LENGTH} characters long.",
            )

        errors = validate_password_strength(password)
        if errors:
            raise ValidationError("Weak password", errors[0], extra={"errors": errors})

        if await self.users.get_by_username(username) is not None:
            raise ConflictError("Username already exists", "Please choose a different username.")

        user = await self.users.create(username, email, hash_password(password))
        logger.info(f"Registered user: {user.username}")
        return user

    async def authenticate(self, username: str, password: str) -> User:
        """Return the user for valid credentials.

        Raises the same AuthError for "user not found" and "wrong password"
        to prevent user enumeration.
        """
        username = sanitize_input(username)
        if not username or not password:
            raise ValidationError("Missing credentials", "Username and password are required.")

        user = await self.users.get_by_username(username)
        if user is None:
            # Perform a dummy hash to keep response timing uniform
            verify_password(password, hash_password("dummy-password"))
            raise AuthError("Invalid credentials", "Username or password is incorrect.")

        if not verify_password(password, user.password_hash):
            raise AuthError("Invalid credentials", "Username or password is incorrect.")

        return user
