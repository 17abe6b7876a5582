# HLPFL Forms Services
from hlpfl_forms.services.auth import AuthService, MemoryUserStore, User, UserStore
from hlpfl_forms.services.forms import FormStore, MemoryFormStore

__all__ = [
    "AuthService",
    "FormStore",
    "MemoryFormStore",
    "MemoryUserStore",
    "User",
    "UserStore",
]
