"""Tests for serial port listing."""

from unittest.mock import MagicMock, patch

from inobridge.ports import PortInfo, list_serial_ports


def _port(device, description, hwid, vid=None, pid=None):
    p = MagicMock()
    p.device = device
    p.description = description
    p.hwid = hwid
    p.vid = vid
    p.pid = pid
    return p


class TestListSerialPorts:
    @patch("inobridge.ports.comports")
    def test_list_ports_sorted(self, mock_comports):
        mock_comports.return_value = [
            _port("/dev/ttyUSB0", "CP2102 USB to UART Bridge", "USB VID:PID=10C4:EA60", 0x10C4, 0xEA60),
            _port("/dev/ttyACM0", "Arduino Uno", "USB VID:PID=2341:0043", 0x2341, 0x0043),
        ]
        result = list_serial_ports()
        assert [p.device for p in result] == ["/dev/ttyACM0", "/dev/ttyUSB0"]
        assert result[0].description == "Arduino Uno"
        assert result[0].vid == 0x2341

    @patch("inobridge.ports.comports")
    def test_list_ports_empty(self, mock_comports):
        mock_comports.return_value = []
        assert list_serial_ports() == []


class TestPortInfo:
    def test_to_dict(self):
        info = PortInfo(device="COM3", description="USB Serial Device", hwid="USB VID:PID=2341:0043")
        assert info.to_dict() == {
            "device": "COM3",
            "description": "USB Serial Device",
            "hwid": "USB VID:PID=2341:0043",
            "vid": None,
            "pid": None,
        }
