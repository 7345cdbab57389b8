from .hierarchy import Cell, Church, Group, Pcf  # noqa: F401
from .member import Member  # noqa: F401
from .user import User  # noqa: F401
from .service import Service  # noqa: F401
from .attendance import AttendanceRecord  # noqa: F401
