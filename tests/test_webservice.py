#!/usr/bin/env python3
"""
Tests for the Cisco IP phone web service client.
"""

import unittest
from unittest.mock import MagicMock, patch

import requests

from errors import ServiceQueryError
from webservice import DEFAULT_HTTP_TIMEOUT, PhoneWebService

DEVICE_INFORMATION = b"""<?xml version="1.0" encoding="UTF-8"?>
<DeviceInformation>
  <MACAddress>AABBCCDDEEFF</MACAddress>
  <HostName>SEPAABBCCDDEEFF</HostName>
  <phoneDN>2001</phoneDN>
  <versionID>SCCP41.9-4-2SR3-1S</versionID>
  <serialNumber>SN123</serialNumber>
  <modelNumber>7961</modelNumber>
</DeviceInformation>
"""

URL = "http://10.0.0.5/CGI/Java/Serviceability?adapterX=device.statistics.device"


def _response(content=DEVICE_INFORMATION):
    response = MagicMock()
    response.content = content
    response.raise_for_status.return_value = None
    return response


class TestPhoneWebService(unittest.TestCase):
    """Test querying and parsing the device information page."""

    @patch("webservice.requests.get")
    def test_query_returns_complete_record(self, mock_get):
        mock_get.return_value = _response()
        phone = PhoneWebService().query("10.0.0.5")
        self.assertEqual(phone.mac_address, "AA:BB:CC:DD:EE:FF")
        self.assertEqual(phone.ip_address, "10.0.0.5")
        self.assertEqual(phone.extension, "2001")
        self.assertEqual(phone.model, "7961")
        self.assertEqual(phone.serial_number, "SN123")

    @patch("webservice.requests.get")
    def test_direct_connection_without_proxy(self, mock_get):
        mock_get.return_value = _response()
        PhoneWebService().query("10.0.0.5")
        mock_get.assert_called_once_with(URL, proxies=None, timeout=DEFAULT_HTTP_TIMEOUT)

    @patch("webservice.requests.get")
    def test_query_through_proxy(self, mock_get):
        mock_get.return_value = _response()
        PhoneWebService(proxy="http://proxy.local:3128", timeout=3).query("10.0.0.5")
        _, kwargs = mock_get.call_args
        self.assertEqual(kwargs["proxies"]["http"], "http://proxy.local:3128")
        self.assertEqual(kwargs["timeout"], 3)

    @patch("webservice.requests.get")
    def test_empty_proxy_means_direct(self, mock_get):
        mock_get.return_value = _response()
        PhoneWebService(proxy="").query("10.0.0.5")
        _, kwargs = mock_get.call_args
        self.assertIsNone(kwargs["proxies"])

    @patch("webservice.requests.get")
    def test_connection_refused(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(ServiceQueryError) as ctx:
            PhoneWebService().query("10.0.0.5")
        self.assertEqual(ctx.exception.ip_address, "10.0.0.5")

    @patch("webservice.requests.get")
    def test_timeout(self, mock_get):
        mock_get.side_effect = requests.Timeout("read timed out")
        with self.assertRaises(ServiceQueryError):
            PhoneWebService().query("10.0.0.5")

    @patch("webservice.requests.get")
    def test_http_error_status(self, mock_get):
        response = _response()
        response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
        mock_get.return_value = response
        with self.assertRaises(ServiceQueryError):
            PhoneWebService().query("10.0.0.5")

    @patch("webservice.requests.get")
    def test_malformed_body(self, mock_get):
        mock_get.return_value = _response(b"<html><body>Login required")
        with self.assertRaises(ServiceQueryError):
            PhoneWebService().query("10.0.0.5")

    @patch("webservice.requests.get")
    def test_unknown_xml_encoding(self, mock_get):
        mock_get.return_value = _response(b'<?xml version="1.0" encoding="bogus"?><DeviceInformation/>')
        with self.assertRaises(ServiceQueryError) as ctx:
            PhoneWebService().query("10.0.0.5")
        self.assertEqual(ctx.exception.ip_address, "10.0.0.5")

    @patch("webservice.requests.get")
    def test_missing_field(self, mock_get):
        body = DEVICE_INFORMATION.replace(b"<serialNumber>SN123</serialNumber>", b"")
        mock_get.return_value = _response(body)
        with self.assertRaises(ServiceQueryError) as ctx:
            PhoneWebService().query("10.0.0.5")
        self.assertIn("serialNumber", str(ctx.exception))

    @patch("webservice.requests.get")
    def test_empty_directory_number_is_kept_empty(self, mock_get):
        body = DEVICE_INFORMATION.replace(b"<phoneDN>2001</phoneDN>", b"<phoneDN/>")
        mock_get.return_value = _response(body)
        self.assertEqual(PhoneWebService().query("10.0.0.5").extension, "")

    @patch("webservice.requests.get")
    def test_not_an_ipv4_target(self, mock_get):
        with self.assertRaises(ServiceQueryError):
            PhoneWebService().query("fe80::1")
        mock_get.assert_not_called()

    @patch("webservice.requests.get")
    def test_invalid_mac(self, mock_get):
        body = DEVICE_INFORMATION.replace(b"AABBCCDDEEFF", b"not-a-mac")
        mock_get.return_value = _response(body)
        with self.assertRaises(ServiceQueryError):
            PhoneWebService().query("10.0.0.5")


if __name__ == "__main__":
    unittest.main()
