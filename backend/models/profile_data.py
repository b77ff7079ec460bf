"""ProfileData - transport shape of one profile observation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ProfileData(BaseModel):
    """A snapshot of a user's profile statistics.

    Produced by the profile parser, returned by store reads and served as JSON.
    Numeric fields default to 0 when they could not be extracted.
    """

    model_config = ConfigDict(from_attributes=True)

    owner: str
    timestamp: datetime
    rank: int = 0
    upload: str = ""
    current_upload: str = ""
    current_download: str = ""
    points: int = 0
    seeding_count: int = 0
