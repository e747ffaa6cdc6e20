"""Import all models so SQLAlchemy metadata knows about them."""
from teledrive.models.base import Base
from teledrive.models.file_record import FileRecord
from teledrive.models.profile import Profile

__all__ = ["Base", "FileRecord", "Profile"]
