"""Request dependencies: the acting user, taken from request headers."""

from typing import NamedTuple

from fastapi import Header

from requisitions.order.lifecycle import Role, parse_role


class Actor(NamedTuple):
    id: str
    role: Role


def current_actor(
    x_actor_id: str = Header(..., alias="X-Actor-Id"),
    x_actor_role: str = Header(..., alias="X-Actor-Role"),
) -> Actor:
    """Identify the caller. An unknown role is a validation error."""
    return Actor(id=x_actor_id, role=parse_role(x_actor_role.strip().upper()))
