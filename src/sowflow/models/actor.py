"""The authenticated caller passed explicitly into every engine call."""

from dataclasses import dataclass

from sowflow.models.enums import Role


@dataclass(frozen=True)
class Actor:
    id: str
    role: Role
    is_admin: bool = False

    @classmethod
    def from_claims(cls, user: dict) -> "Actor":
        """Build an Actor from the user dict placed on request.state by AuthMiddleware.

        Raises ValueError when the role claim is not a known Role.
        """
        role = Role(user.get("role", ""))
        return cls(
            id=user["sub"],
            role=role,
            is_admin=bool(user.get("is_admin")) or role is Role.ADMIN,
        )
