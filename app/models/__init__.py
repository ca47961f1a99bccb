# Firewatch — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.location import Location   # noqa
from app.models.alert import Alert         # noqa
