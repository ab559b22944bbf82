from enum import Enum


class UserRole(str, Enum):
    LANDLORD = "LANDLORD"
    TENANT = "TENANT"
    MAINTENANCE = "MAINTENANCE"

    @classmethod
    def _missing_(cls, value):
        # legacy tokens carry OWNER for landlords
        if isinstance(value, str) and value.upper() == "OWNER":
            return cls.LANDLORD
        if isinstance(value, str) and value.upper() in cls.__members__:
            return cls[value.upper()]
        return None
