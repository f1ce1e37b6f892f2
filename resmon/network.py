"""Network interfaces found in sysfs."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from resmon.util import ResourceError

NET_ROOT = "/sys/class/net"

_UNSIGNED = re.compile(r"\+?[0-9]+")
_HEX = re.compile(r"\+?[0-9a-fA-F]+")
_U16_MAX = 0xFFFF


class InterfaceType(Enum):
    """Kinds of network interfaces."""

    BLUETOOTH = "Bluetooth"
    BRIDGE = "Bridge"
    ETHERNET = "Ethernet"
    INFINIBAND = "InfiniBand"
    SLIP = "Slip"
    VIRTUAL_ETHERNET = "VirtualEthernet"
    VM_BRIDGE = "VmBridge"
    WIREGUARD = "Wireguard"
    WLAN = "Wlan"
    WWAN = "Wwan"
    UNKNOWN = "Unknown"

    @classmethod
    def from_interface_name(cls, interface_name):
        """Guess the interface type from the interface's name."""
        for prefixes, kind in _NAME_PREFIXES:
            if interface_name.startswith(prefixes):
                return kind
        return cls.UNKNOWN

    def description(self):
        """Return a readable description of the interface type."""
        return _DESCRIPTIONS[self]


# Checked in this order against the start of the interface's name.
_NAME_PREFIXES = (
    (("bn",), InterfaceType.BLUETOOTH),
    (("eth", "en"), InterfaceType.ETHERNET),
    (("ib",), InterfaceType.INFINIBAND),
    (("sl",), InterfaceType.SLIP),
    (("veth",), InterfaceType.VIRTUAL_ETHERNET),
    (("virbr",), InterfaceType.VM_BRIDGE),
    (("wg",), InterfaceType.WIREGUARD),
    (("wl",), InterfaceType.WLAN),
    (("ww",), InterfaceType.WWAN),
)

_DESCRIPTIONS = {
    InterfaceType.BLUETOOTH: "Bluetooth Tether",
    InterfaceType.BRIDGE: "Network Bridge",
    InterfaceType.ETHERNET: "Ethernet Connection",
    InterfaceType.INFINIBAND: "InfiniBand Connection",
    InterfaceType.SLIP: "Serial Line IP Connection",
    InterfaceType.VIRTUAL_ETHERNET: "Virtual Ethernet Device",
    InterfaceType.VM_BRIDGE: "VM Network Bridge",
    InterfaceType.WIREGUARD: "VPN Tunnel (WireGuard)",
    InterfaceType.WLAN: "Wi-Fi Connection",
    InterfaceType.WWAN: "WWAN Connection",
    InterfaceType.UNKNOWN: "Network Interface",
}

_ICONS = {
    InterfaceType.BLUETOOTH: "bluetooth-symbolic",
    InterfaceType.BRIDGE: "bridge-symbolic",
    InterfaceType.ETHERNET: "ethernet-symbolic",
    InterfaceType.INFINIBAND: "infiniband-symbolic",
    InterfaceType.SLIP: "slip-symbolic",
    InterfaceType.VIRTUAL_ETHERNET: "virtual-ethernet",
    InterfaceType.VM_BRIDGE: "vm-bridge-symbolic",
    InterfaceType.WIREGUARD: "vpn-symbolic",
    InterfaceType.WLAN: "wlan-symbolic",
    InterfaceType.WWAN: "wwan-symbolic",
}

DEFAULT_ICON = "unknown-network-type-symbolic"

_VIRTUAL_TYPES = frozenset(
    {
        InterfaceType.BRIDGE,
        InterfaceType.VM_BRIDGE,
        InterfaceType.VIRTUAL_ETHERNET,
        InterfaceType.WIREGUARD,
    }
)


def _read_optional(path):
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def _parse_hex_u16(text):
    if not _HEX.fullmatch(text):
        raise ResourceError(f"invalid PCI ID part {text!r}")
    value = int(text, 16)
    if value > _U16_MAX:
        raise ResourceError(f"PCI ID part {text!r} out of range")
    return value


def _read_uevent(path):
    text = Path(path).read_text(encoding="utf-8")
    entries = {}
    for line in text.split("\n"):
        parts = line.split("=")
        if len(parts) == 2:
            entries[parts[0]] = parts[1]
    return entries


def _read_counter(path):
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        raise ResourceError("read failure") from err
    text = text.replace("\n", "")
    if not _UNSIGNED.fullmatch(text):
        raise ResourceError("parsing failure")
    return int(text)


@dataclass(eq=False)
class NetworkInterface:
    """A network interface found in sysfs."""

    interface_name: str
    sysfs_path: Path
    driver_name: str | None = None
    interface_type: InterfaceType = InterfaceType.UNKNOWN
    speed: int | None = None
    vendor: str | None = None
    pid_name: str | None = None
    device_name: str | None = None
    hw_address: str | None = None
    received_bytes_path: Path = field(default=None)
    sent_bytes_path: Path = field(default=None)

    def __post_init__(self):
        self.sysfs_path = Path(self.sysfs_path)
        if self.received_bytes_path is None:
            self.received_bytes_path = self.sysfs_path / "statistics" / "rx_bytes"
        if self.sent_bytes_path is None:
            self.sent_bytes_path = self.sysfs_path / "statistics" / "tx_bytes"

    def __eq__(self, other):
        if not isinstance(other, NetworkInterface):
            return NotImplemented
        return (
            self.interface_name == other.interface_name
            and self.vendor == other.vendor
            and self.pid_name == other.pid_name
            and self.hw_address == other.hw_address
        )

    @staticmethod
    def get_sysfs_paths(net_root=NET_ROOT):
        """Return the sysfs paths of all interfaces except loopback."""
        try:
            entries = sorted(Path(net_root).iterdir())
        except OSError as err:
            raise ResourceError(f"unable to list {net_root}") from err
        return [entry for entry in entries if not entry.name.startswith("lo")]

    @classmethod
    def from_sysfs(cls, sysfs_path, pci_db=None):
        """Create an interface from its sysfs directory; names come from ``pci_db``."""
        path = Path(sysfs_path)
        interface_name = path.name
        if interface_name in ("", ".."):
            raise ResourceError("invalid sysfs path")
        try:
            dev_uevent = _read_uevent(path / "device" / "uevent")
        except (OSError, UnicodeDecodeError):
            dev_uevent = {}

        vid, pid = 0, 0
        pci_id = dev_uevent.get("PCI_ID")
        if pci_id is not None:
            parts = pci_id.split(":")
            if len(parts) == 2:
                vid, pid = _parse_hex_u16(parts[0]), _parse_hex_u16(parts[1])

        speed_text = _read_optional(path / "speed")
        speed = None
        if speed_text is not None:
            speed = int(speed_text) if _UNSIGNED.fullmatch(speed_text) else 0

        label = _read_optional(path / "device" / "label")
        address = _read_optional(path / "address")

        return cls(
            interface_name=interface_name,
            sysfs_path=path,
            driver_name=dev_uevent.get("DRIVER"),
            interface_type=InterfaceType.from_interface_name(interface_name),
            speed=speed,
            vendor=pci_db.vendor_name(vid) if pci_db is not None else None,
            pid_name=pci_db.device_name(vid, pid) if pci_db is not None else None,
            device_name=label.replace("\n", "") if label is not None else None,
            hw_address=address.replace("\n", "") if address is not None else None,
        )

    def display_name(self):
        """Return the most readable name known for this interface."""
        if self.device_name is not None:
            return self.device_name
        if self.pid_name is not None:
            return self.pid_name
        return self.interface_name

    def received_bytes(self):
        """Return the amount of bytes received by this interface."""
        return _read_counter(self.received_bytes_path)

    def sent_bytes(self):
        """Return the amount of bytes sent by this interface."""
        return _read_counter(self.sent_bytes_path)

    def icon_name(self):
        """Return the icon name for the type of interface."""
        return _ICONS.get(self.interface_type, DEFAULT_ICON)

    def is_virtual(self):
        """Return whether the interface is virtual."""
        return self.interface_type in _VIRTUAL_TYPES


@dataclass
class NetworkData:
    """One snapshot of a network interface's state."""

    inner: NetworkInterface
    is_virtual: bool
    received_bytes: int
    sent_bytes: int
    display_name: str

    @classmethod
    def from_path(cls, path, pci_db=None):
        """Gather the state of the interface at ``path``."""
        inner = NetworkInterface.from_sysfs(path, pci_db)
        return cls(
            inner=inner,
            is_virtual=inner.is_virtual(),
            received_bytes=inner.received_bytes(),
            sent_bytes=inner.sent_bytes(),
            display_name=inner.display_name(),
        )