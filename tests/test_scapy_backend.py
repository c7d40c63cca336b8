#!/usr/bin/env python3
"""
Tests for the scapy capture backend. No real interface is opened.
"""

import threading
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, call, patch

from scapy.layers.l2 import Ether

from capture import LINKTYPE_ETHERNET, ScapyCaptureBackend, ScapyCaptureDevice, get_capture_backend
from errors import CaptureSubsystemUnavailable, DeviceOpenError


class TestScapyCaptureBackend(unittest.TestCase):
    """Test device enumeration."""

    @patch("capture.scapy_backend.conf")
    def test_lists_interfaces_in_order(self, mock_conf):
        mock_conf.ifaces.values.return_value = [
            SimpleNamespace(name="eth0", description="Intel(R) Ethernet", network_name="eth0"),
            SimpleNamespace(name="vmnet8", description="VMware Network Adapter VMnet8",
                            network_name=r"\Device\NPF_{1234}"),
        ]
        devices = ScapyCaptureBackend().list_devices()
        self.assertEqual([d.name for d in devices], ["eth0", "vmnet8"])
        self.assertEqual(devices[1].description, "VMware Network Adapter VMnet8")
        self.assertEqual(devices[1].network_name, r"\Device\NPF_{1234}")

    @patch("capture.scapy_backend.conf")
    def test_enumeration_failure(self, mock_conf):
        mock_conf.ifaces.values.side_effect = OSError("no capture driver")
        with self.assertRaises(CaptureSubsystemUnavailable):
            ScapyCaptureBackend().list_devices()

    def test_factory(self):
        self.assertIsInstance(get_capture_backend({}), ScapyCaptureBackend)
        self.assertIsInstance(get_capture_backend({"backend": "scapy"}), ScapyCaptureBackend)
        with self.assertRaises(ValueError):
            get_capture_backend({"backend": "winpcap"})


class TestScapyCaptureDevice(unittest.TestCase):
    """Test the open -> filter -> read -> close cycle."""

    def setUp(self):
        patcher = patch("capture.scapy_backend.conf")
        self.mock_conf = patcher.start()
        self.addCleanup(patcher.stop)
        self.first_socket = MagicMock(LL=Ether)
        self.second_socket = MagicMock(LL=Ether)
        self.mock_conf.L2listen.side_effect = [self.first_socket, self.second_socket]
        self.device = ScapyCaptureDevice("eth0")

    def test_open_promiscuous(self):
        self.device.open(promiscuous=True, timeout_ms=5000)
        self.mock_conf.L2listen.assert_called_once_with(iface="eth0", promisc=True, filter=None)
        self.assertEqual(self.device.link_type, LINKTYPE_ETHERNET)

    def test_open_failure(self):
        self.mock_conf.L2listen.side_effect = PermissionError("Operation not permitted")
        with self.assertRaises(DeviceOpenError):
            self.device.open(promiscuous=True, timeout_ms=5000)

    def test_non_ethernet_link_type(self):
        self.first_socket.LL = None
        self.device.open(promiscuous=True, timeout_ms=5000)
        self.assertIsNone(self.device.link_type)

    def test_filter_reopens_socket(self):
        self.device.open(promiscuous=True, timeout_ms=5000)
        self.device.set_filter("ether proto 0x88cc")
        self.first_socket.close.assert_called_once()
        self.assertEqual(self.mock_conf.L2listen.call_args_list[1],
                         call(iface="eth0", promisc=True, filter="ether proto 0x88cc"))

    def test_filter_requires_open_device(self):
        with self.assertRaises(DeviceOpenError):
            self.device.set_filter("ether proto 0x88cc")

    @patch("capture.scapy_backend.sniff")
    def test_read_returns_first_frame(self, mock_sniff):
        mock_sniff.return_value = [b"\x01\x80\xc2\x00\x00\x0e"]
        self.device.open(promiscuous=True, timeout_ms=5000)
        self.assertEqual(self.device.read_frame(5), b"\x01\x80\xc2\x00\x00\x0e")
        _, kwargs = mock_sniff.call_args
        self.assertIs(kwargs["opened_socket"], self.first_socket)
        self.assertEqual(kwargs["count"], 1)

    @patch("capture.scapy_backend.sniff")
    def test_read_times_out(self, mock_sniff):
        mock_sniff.return_value = []
        self.device.open(promiscuous=True, timeout_ms=50)
        self.assertIsNone(self.device.read_frame(0.05))

    @patch("capture.scapy_backend.sniff")
    def test_read_defaults_to_open_timeout(self, mock_sniff):
        mock_sniff.return_value = []
        self.device.open(promiscuous=True, timeout_ms=50)
        self.assertIsNone(self.device.read_frame())
        self.assertTrue(mock_sniff.called)

    @patch("capture.scapy_backend.sniff")
    def test_read_cancelled(self, mock_sniff):
        cancel = threading.Event()
        cancel.set()
        self.device.open(promiscuous=True, timeout_ms=5000)
        self.assertIsNone(self.device.read_frame(5, cancel))
        mock_sniff.assert_not_called()

    def test_close_is_idempotent(self):
        self.device.open(promiscuous=True, timeout_ms=5000)
        self.device.close()
        self.device.close()
        self.first_socket.close.assert_called_once()

    def test_context_manager_closes(self):
        with self.device as device:
            device.open(promiscuous=True, timeout_ms=5000)
        self.first_socket.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
