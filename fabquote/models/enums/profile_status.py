# fabquote/models/enums/profile_status.py
import enum


class ProfileStatus(str, enum.Enum):
    unverified = "unverified"
    verified = "verified"
