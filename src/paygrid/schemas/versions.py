from enum import Enum

SDK_VERSION = "0.1.0"


class ApiVersion(Enum):
    V1 = "v1"

    @classmethod
    def from_string(cls, value):
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unsupported API version: {value}")
