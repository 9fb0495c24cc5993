"""
Authentication service for user management.
"""
from typing import List, Optional, Tuple

from gallery_api.exceptions import ConflictError, NotFoundError
from gallery_api.models.user import User, UserPreferences
from gallery_api.schemas.user import Token, UserCreate
from gallery_api.services.sessions import SessionService
from gallery_api.store import JsonDocumentStore
from gallery_api.utils.logger import log_info, log_warning
from gallery_api.utils.security import (
    create_access_token,
    generate_salt,
    hash_password,
    verify_password,
)
from gallery_api.utils.user_agent import parse_user_agent

USERS = "users"


def _next_user_id(users: List[dict]) -> str:
    """Decimal string ids: max existing + 1, first user "1"."""
    numeric = []
    for doc in users:
        try:
            numeric.append(int(str(doc.get("id"))))
        except ValueError:
            continue
    return str(max(numeric) + 1 if numeric else 1)


def avatar_letter(name: str) -> str:
    return name[:1].upper()


class AuthService:
    """
    Service for handling user authentication.
    Provides methods for registration, login, and profile management.
    """

    def __init__(self, store: JsonDocumentStore):
        self.store = store
        self.sessions = SessionService(store)

    async def register(self, user_data: UserCreate) -> User:
        """
        Register a new user.

        Args:
            user_data: User registration data

        Returns:
            Created User

        Raises:
            ConflictError: If username or email is already in use (case-insensitive)
        """
        username = user_data.username.strip()
        email = str(user_data.email).strip()
        name = user_data.name.strip()

        async with self.store.session(USERS, "favorites", "user_specific_shares") as docs:
            users = docs[USERS]
            if any(str(u.get("username", "")).lower() == username.lower() for u in users):
                log_warning("Registration failed", event="auth", reason="username_exists")
                raise ConflictError("Username is already taken")
            if any(str(u.get("email", "")).lower() == email.lower() for u in users):
                log_warning("Registration failed", event="auth", reason="email_exists")
                raise ConflictError("Email is already registered")

            salt = generate_salt()
            user = User(
                id=_next_user_id(users),
                username=username,
                email=email,
                password=hash_password(user_data.password, salt),
                password_salt=salt,
                name=name,
                avatar_letter=avatar_letter(name),
                preferences=UserPreferences(),
            )
            users.append(user.to_doc())
            docs["favorites"].setdefault(user.id, {"itemIds": []})

        log_info("Registration", event="auth", user_id=user.id)
        return user

    async def authenticate(self, identifier: str, password: str) -> Optional[User]:
        """
        Authenticate a user by username or email.

        Args:
            identifier: Username or email, case-insensitive
            password: Plain text password

        Returns:
            User if authentication successful, None otherwise
        """
        needle = identifier.strip().lower()
        users = await self.store.read(USERS)
        doc = next(
            (u for u in users
             if str(u.get("username", "")).lower() == needle
             or str(u.get("email", "")).lower() == needle),
            None,
        )
        if doc is None:
            log_warning("Login failed", event="auth", reason="user_not_found")
            return None
        if not verify_password(password, doc.get("password"), doc.get("passwordSalt")):
            log_warning("Login failed", event="auth", reason="invalid_password", user_id=doc.get("id"))
            return None
        return User.model_validate(doc)

    async def login(
        self,
        identifier: str,
        password: str,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Optional[Tuple[Token, User]]:
        """
        Login user, record an active session and return a JWT bound to it.

        Returns:
            (Token, User) if login successful, None otherwise
        """
        user = await self.authenticate(identifier, password)
        if not user:
            return None

        session = await self.sessions.add(user.id, parse_user_agent(user_agent), ip_address)
        access_token = create_access_token(user.id, session.session_id)
        log_info("Login", event="auth", user_id=user.id)
        return Token(access_token=access_token, session_id=session.session_id), user

    async def logout(self, user_id: str, session_id: str) -> None:
        await self.sessions.remove(user_id, session_id)

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        """
        Get user by ID.

        Returns:
            User if found, None otherwise
        """
        users = await self.store.read(USERS)
        for doc in users:
            if str(doc.get("id")) == user_id:
                return User.model_validate(doc)
        return None

    async def update_profile(self, user_id: str, name: str, new_password: Optional[str] = None) -> User:
        """
        Update display name (and avatar letter) and optionally the password.
        A new password gets a fresh salt.

        Raises:
            NotFoundError: If the user does not exist
        """
        name = name.strip()
        async with self.store.session(USERS) as docs:
            doc = next((u for u in docs[USERS] if str(u.get("id")) == user_id), None)
            if doc is None:
                raise NotFoundError("User not found")
            doc["name"] = name
            doc["avatarLetter"] = avatar_letter(name)
            if new_password:
                salt = generate_salt()
                doc["passwordSalt"] = salt
                doc["password"] = hash_password(new_password, salt)
            updated = User.model_validate(doc)

        log_info("Profile updated", event="auth", user_id=user_id, password_changed=bool(new_password))
        return updated

    async def users_for_sharing(self, user_id: str) -> List[User]:
        """Every user except the caller."""
        users = await self.store.read(USERS)
        return [User.model_validate(u) for u in users if str(u.get("id")) != user_id]

