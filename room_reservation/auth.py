from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthenticationError
from .models import RoleName, User
from .yaml_store import ReservationYamlRepository


def create_user(
    repository: ReservationYamlRepository,
    user_id: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    role_name: RoleName = RoleName.USER,
) -> User:
    if not password:
        raise ValueError("password must not be empty")

    user = User(
        user_id=user_id,
        password_hash=generate_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        role_name=role_name,
    )
    return repository.add_user(user)


def authenticate(repository: ReservationYamlRepository, user_id: str, password: str) -> User:
    user = repository.find_user(user_id)
    # same message for unknown users and wrong passwords
    if user is None or not check_password_hash(user.password_hash, password):
        raise AuthenticationError("Invalid user id or password.")
    return user
