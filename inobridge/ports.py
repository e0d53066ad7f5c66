"""Serial port listing for choosing an upload target."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from serial.tools.list_ports import comports


@dataclass
class PortInfo:
    device: str
    description: str
    hwid: str
    vid: int | None = None
    pid: int | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def list_serial_ports() -> list[PortInfo]:
    """List serial ports visible to pyserial, sorted by device name."""
    ports = []
    for p in comports():
        ports.append(PortInfo(
            device=p.device,
            description=p.description,
            hwid=p.hwid,
            vid=getattr(p, "vid", None),
            pid=getattr(p, "pid", None),
        ))
    return sorted(ports, key=lambda p: p.device)
