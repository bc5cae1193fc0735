"""Device-related data models."""

from dataclasses import dataclass
from enum import Enum


class DeviceKind(str, Enum):
    """How a device is reached."""

    STANDARD = "standard"
    NON_STANDARD = "non_standard"


@dataclass(frozen=True)
class Device:
    """Identity record for a device under test."""

    host_address: str
    nat_address: str | None = None
    nat_port: int | None = None
    mac_address: str = ""
    username: str | None = None
    password: str | None = None
    kind: DeviceKind = DeviceKind.STANDARD

    @property
    def is_standard(self) -> bool:
        """Check if the device is reached directly on its host address."""
        return self.kind is DeviceKind.STANDARD

    @property
    def label(self) -> str:
        """Short identifier for log lines."""
        return self.mac_address or self.host_address


@dataclass(frozen=True)
class AddressPlan:
    """Addressing and command policy chosen for one call."""

    kind: DeviceKind
    address: str
    port: int = 22
    username: str | None = None
    password: str | None = None
    rewrite_pipes: bool = False
    append_newline: bool = False
    retry: bool = True

    @property
    def target(self) -> str:
        """address:port, as shown in log lines and errors."""
        return f"{self.address}:{self.port}"
