"""
Profile mappers.
"""

from domain.models import UserProfile
from domain.schemas.profile_schemas import ProfileResponse


class ProfileMapper:
    """Mapper for client profile transformations."""

    @staticmethod
    def to_dict(profile: UserProfile) -> dict:
        """Convert a UserProfile ORM row into a JSON-serializable dict"""
        return ProfileResponse.model_validate(profile).model_dump(mode="json")
