"""Tests for sentry.cli: click commands via CliRunner."""

import json
import os
import tempfile
import unittest


def _observation(ssid="Office", bssid="00:00:0C:00:00:01", caps="[WPA2-PSK-CCMP][ESS]"):
    return {"ssid": ssid, "bssid": bssid, "capabilities": caps, "rssi": -60,
            "frequency": 2437, "timestamp": 1_700_000_000_000, "threats": []}


class TestCli(unittest.TestCase):
    def setUp(self):
        from click.testing import CliRunner
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = self._tmp.name
        self.data_dir = os.path.join(self.tmp, "data")
        self.runner = CliRunner()

    def tearDown(self):
        from shared.logger import configure_logging
        configure_logging("WARNING", console_output=False)

    def _invoke(self, *args):
        from sentry.cli import cli
        return self.runner.invoke(cli, ["--quiet", "--data-dir", self.data_dir, *args])

    def _write(self, name, payload):
        path = os.path.join(self.tmp, name)
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(payload if isinstance(payload, str) else json.dumps(payload))
        return path

    def _history(self):
        path = os.path.join(self.data_dir, "scan_history.json")
        if not os.path.exists(path):
            return []
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)

    def test_version(self):
        from sentry.cli import cli
        result = self.runner.invoke(cli, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("1.0.0", result.output)

    def test_scan_stores_history(self):
        scan = self._write("scan.json", [_observation()])
        result = self._invoke("scan", scan)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(len(self._history()), 1)

    def test_scan_accepts_networks_object(self):
        scan = self._write("scan.json", {"networks": [_observation()]})
        self.assertEqual(self._invoke("scan", scan, "--no-store").exit_code, 0)
        self.assertEqual(self._history(), [])

    def test_fail_on_threat(self):
        scan = self._write("scan.json", [_observation(ssid="Free WiFi", caps="[ESS]")])
        result = self._invoke("scan", scan, "--fail-on-threat")
        self.assertEqual(result.exit_code, 1)
        stored = self._history()[0]["networks"][0]["threats"]
        self.assertIn("OPEN_NETWORK", stored)
        self.assertIn("SUSPICIOUS_SSID", stored)

    def test_scan_with_root_data_and_report(self):
        scan = self._write("scan.json", [_observation()])
        root = self._write("root.json", {"deauthFrameCount": 30, "rootActive": True})
        report = os.path.join(self.tmp, "report.json")
        result = self._invoke("scan", scan, "--root-data", root, "-o", report)
        self.assertEqual(result.exit_code, 0, result.output)
        with open(report, encoding="utf-8") as fh:
            data = json.load(fh)
        self.assertEqual(data["summary"]["threats"], {"DEAUTH_FLOOD": 1})

    def test_missing_scan_file(self):
        result = self._invoke("scan", os.path.join(self.tmp, "absent.json"))
        self.assertEqual(result.exit_code, 1)

    def test_invalid_json(self):
        scan = self._write("scan.json", "{broken")
        self.assertEqual(self._invoke("scan", scan).exit_code, 1)

    def test_missing_config(self):
        from sentry.cli import cli
        result = self.runner.invoke(cli, ["--config", os.path.join(self.tmp, "none.toml"), "pins"])
        self.assertEqual(result.exit_code, 1)

    def test_changes_fail_on_high(self):
        first = self._write("first.json", [_observation()])
        self._invoke("scan", first)
        second = self._write("second.json", [_observation(caps="[ESS]")])
        result = self._invoke("changes", "--scan", second, "--fail-on-high")
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(self._invoke("changes", "--fail-on-high").exit_code, 0)

    def test_history_list_and_clear(self):
        scan = self._write("scan.json", [_observation()])
        self._invoke("scan", scan)
        self.assertEqual(self._invoke("history", "list").exit_code, 0)
        self.assertEqual(self._invoke("history", "clear", "--yes").exit_code, 0)
        self.assertEqual(self._history(), [])

    def test_import_wigle(self):
        csv_path = self._write("wigle.csv", (
            "MAC,SSID,AuthMode,FirstSeen,Channel,RSSI,CurrentLatitude,CurrentLongitude,"
            "AltitudeMeters,AccuracyMeters,Type\n"
            "AA:BB:CC:DD:EE:FF,HomeNet,[WPA2-PSK-CCMP][ESS],2024-01-15 10:30:00,6,-65,,,,,WIFI\n"
        ))
        result = self._invoke("import", "wigle", csv_path)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(self._history()[0]["networks"][0]["ssid"], "HomeNet")

    def test_import_cells(self):
        csv_path = self._write("cells.csv", (
            "radio,mcc,mnc,lac,cid,lon,lat,range,samples,changeable,created,updated,averageSignal\n"
            "LTE,310,410,12345,67890,-87.6298,41.8781,1000,10,1,0,0,-85\n"
        ))
        self.assertEqual(self._invoke("import", "cells", csv_path).exit_code, 0)
        with open(os.path.join(self.data_dir, "cell_towers.json"), encoding="utf-8") as fh:
            self.assertEqual(json.load(fh)[0]["cid"], 67890)

    def test_oui_commands(self):
        self.assertEqual(self._invoke("oui", "lookup", "00:00:0C:00:00:01").exit_code, 0)
        bad = self._write("bad.properties", "<html>oops</html>")
        self.assertEqual(self._invoke("oui", "refresh", bad).exit_code, 1)
        good = self._write("good.properties", "\n".join(f"AAAA{i:02X}=V{i}" for i in range(10)))
        self.assertEqual(self._invoke("oui", "refresh", good).exit_code, 0)

    def test_pin_unpin(self):
        self.assertEqual(self._invoke("pin", "aa-bb-cc-dd-ee-ff", "Home", "--note", "x").exit_code, 0)
        with open(os.path.join(self.data_dir, "pinned_networks.json"), encoding="utf-8") as fh:
            self.assertEqual(json.load(fh)[0]["bssid"], "AA:BB:CC:DD:EE:FF")
        self.assertEqual(self._invoke("pins").exit_code, 0)
        self.assertEqual(self._invoke("unpin", "AA:BB:CC:DD:EE:FF").exit_code, 0)
        with open(os.path.join(self.data_dir, "pinned_networks.json"), encoding="utf-8") as fh:
            self.assertEqual(json.load(fh), [])

    def test_pin_rejects_bad_bssid(self):
        self.assertEqual(self._invoke("pin", "not-a-mac").exit_code, 1)


if __name__ == "__main__":
    unittest.main()
