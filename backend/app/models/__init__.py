from app.models.user import User, UserProfile
from app.models.location import Location
from app.models.interest import UserInterest
from app.models.package import TravelPackage

__all__ = [
    "Location",
    "TravelPackage",
    "User",
    "UserInterest",
    "UserProfile",
]
