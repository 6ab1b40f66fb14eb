from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """Identity record issued by the identity provider. Read-only for this service."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    display_name: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "AuthUser":
        """Build a user from verified Supabase access-token claims"""
        metadata = claims.get("user_metadata") or {}
        return cls(
            uid=str(claims["sub"]),
            email=claims.get("email"),
            email_verified=bool(
                metadata.get("email_verified", claims.get("email_verified", False))
            ),
            display_name=metadata.get("full_name") or metadata.get("name"),
            photo_url=metadata.get("avatar_url") or metadata.get("picture"),
        )
