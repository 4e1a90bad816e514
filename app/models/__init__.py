from .user import User
from .entry import NetWorthEntry
from .scenario import Scenario
from .profile import UserProfile
