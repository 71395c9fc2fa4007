"""Business logic for authentication, such as user creation and retrieval."""
from typing import Optional
from . import models

async def get_user_by_username(username: str) -> Optional[models.User]:
    """Retrieves a user by their username, or None."""
    return await models.User.get_or_none(username=username)

async def get_user_by_email(email: str) -> Optional[models.User]:
    return await models.User.get_or_none(email=email)

async def create_user(user_in: dict, hashed_password_val: str, role: str = "customer") -> models.User:
    """Creates a new user in the database.

    Args:
        user_in: A dictionary containing the user data (excluding password).
        hashed_password_val: The hashed password for the new user.
        role: Role assigned to the account. Self-registered users are customers.

    Returns:
        The newly created User object.
    """
    return await models.User.create(
        **user_in,
        hashed_password=hashed_password_val,
        role=role,
    )

async def set_user_role(user: models.User, role: str) -> models.User:
    user.role = role
    await user.save(update_fields=["role"])
    return user
