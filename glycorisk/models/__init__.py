from .user import User
from .patient import Patient, Notification
