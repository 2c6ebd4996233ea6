from . import households
from . import residents
from . import dashboard
from . import users
from . import geography

__all__ = [
    "households",
    "residents",
    "dashboard",
    "users",
    "geography",
]
