"""Tests for sentry.storage: JSON codec and the scan history store."""

import json
import os
import tempfile
import unittest

DAY = 86_400_000
# 2024-01-15 00:00:00 UTC
JAN_15 = 1_705_276_800_000


def _net(bssid="AA:BB:CC:DD:EE:01", ssid="Net", ts=JAN_15, **kwargs):
    from sentry.core.models import NetworkObservation
    return NetworkObservation(ssid=ssid, bssid=bssid, capabilities="[WPA2-PSK-CCMP][ESS]",
                              rssi=-60, frequency=2437, timestamp=ts, **kwargs)


def _record(ts, *networks):
    from sentry.core.models import ScanRecord
    return ScanRecord(timestamp_ms=ts, networks=tuple(networks))


class TestCodec(unittest.TestCase):
    def test_round_trip_full(self):
        from sentry.core.models import GpsFix, ThreatType
        from sentry.core.radio import WifiStandard
        from sentry.storage.codec import record_from_dict, record_to_dict
        net = _net(wifi_standard=WifiStandard.AX,
                   gps=GpsFix(latitude=1.5, longitude=2.5, altitude=30.0, accuracy=4.0),
                   threats=frozenset({ThreatType.EVIL_TWIN, ThreatType.OPEN_NETWORK}))
        record = _record(JAN_15, net)
        self.assertEqual(record_from_dict(record_to_dict(record)), record)

    def test_optional_keys_omitted(self):
        from sentry.storage.codec import observation_to_dict
        data = observation_to_dict(_net())
        for key in ("wifiStandard", "latitude", "longitude", "altitude", "gpsAccuracy"):
            self.assertNotIn(key, data)
        self.assertEqual(data["threats"], [])

    def test_threats_written_as_names(self):
        from sentry.core.models import ThreatType
        from sentry.storage.codec import observation_to_dict
        data = observation_to_dict(_net(threats=frozenset({ThreatType.WPS_VULNERABLE})))
        self.assertEqual(data["threats"], ["WPS_VULNERABLE"])

    def test_unknown_threats_dropped(self):
        from sentry.core.models import ThreatType
        from sentry.storage.codec import observation_from_dict
        net = observation_from_dict({"bssid": "AA:BB:CC:DD:EE:01",
                                     "threats": ["EVIL_TWIN", "FROM_THE_FUTURE", 7]})
        self.assertEqual(net.threats, frozenset({ThreatType.EVIL_TWIN}))

    def test_partial_gps_absent(self):
        from sentry.storage.codec import observation_from_dict
        net = observation_from_dict({"bssid": "AA:BB:CC:DD:EE:01",
                                     "latitude": 1.0, "longitude": 2.0})
        self.assertIsNone(net.gps)

    def test_missing_fields_default(self):
        from sentry.storage.codec import observation_from_dict
        net = observation_from_dict({})
        self.assertEqual(net.ssid, "")
        self.assertEqual(net.rssi, -100)
        self.assertEqual(net.frequency, 0)

    def test_malformed_observation_skipped(self):
        from sentry.storage.codec import record_from_dict
        record = record_from_dict({
            "timestampMs": JAN_15,
            "networks": [{"bssid": "garbage"}, {"bssid": "AA:BB:CC:DD:EE:01"}, "x"],
        })
        self.assertEqual(len(record.networks), 1)

    def test_record_requires_timestamp(self):
        from sentry.storage.codec import record_from_dict
        self.assertIsNone(record_from_dict({"networks": []}))
        self.assertIsNone(record_from_dict({"timestampMs": "soon"}))
        self.assertIsNone(record_from_dict([]))

    def test_observations_from_json_shapes(self):
        from sentry.storage.codec import observations_from_json
        item = {"ssid": "A", "bssid": "AA:BB:CC:DD:EE:01"}
        self.assertEqual(len(observations_from_json([item])), 1)
        self.assertEqual(len(observations_from_json({"networks": [item]})), 1)
        self.assertEqual(observations_from_json({"other": 1}), [])
        self.assertEqual(observations_from_json("nope"), [])

    def test_root_data(self):
        from sentry.storage.codec import root_data_from_dict
        root = root_data_from_dict({"deauthFrameCount": 12, "probeOnlySsids": ["A", "", 3],
                                    "rootActive": True})
        self.assertEqual(root.deauth_frame_count, 12)
        self.assertEqual(root.probe_only_ssids, frozenset({"A"}))
        self.assertTrue(root.root_active)

    def test_root_data_malformed_is_neutral(self):
        from sentry.core.models import RootScanData
        from sentry.storage.codec import root_data_from_dict
        self.assertEqual(root_data_from_dict({"deauthFrameCount": -3}), RootScanData())
        self.assertEqual(root_data_from_dict(None), RootScanData())


class TestScanStore(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.data_dir = self._tmp.name

    def _store(self, **kwargs):
        from sentry.storage.scan_store import ScanStore
        return ScanStore(self.data_dir, **kwargs)

    def _write_raw(self, text):
        with open(os.path.join(self.data_dir, "scan_history.json"), "w", encoding="utf-8") as fh:
            fh.write(text)

    def test_missing_file_is_empty(self):
        self.assertEqual(self._store().load_history(), [])

    def test_corrupt_file_is_empty(self):
        self._write_raw("{not json")
        self.assertEqual(self._store().load_history(), [])

    def test_wrong_shape_is_empty(self):
        self._write_raw('{"timestampMs": 1}')
        self.assertEqual(self._store().load_history(), [])

    def test_append_newest_first(self):
        store = self._store()
        store.append_record(_record(JAN_15, _net()))
        store.append_record(_record(JAN_15 + 1000, _net()))
        self.assertEqual([r.timestamp_ms for r in store.load_history()],
                         [JAN_15 + 1000, JAN_15])

    def test_load_sorts_descending(self):
        self._write_raw(json.dumps([{"timestampMs": 1, "networks": []},
                                    {"timestampMs": 3, "networks": []},
                                    {"timestampMs": 2, "networks": []}]))
        self.assertEqual([r.timestamp_ms for r in self._store().load_history()], [3, 2, 1])

    def test_malformed_records_skipped(self):
        self._write_raw(json.dumps([{"timestampMs": 1, "networks": []}, {"bogus": True}]))
        self.assertEqual(len(self._store().load_history()), 1)

    def test_capacity(self):
        store = self._store(max_records=3)
        for i in range(5):
            store.append_record(_record(JAN_15 + i, _net()))
        history = store.load_history()
        self.assertEqual(len(history), 3)
        self.assertEqual(history[0].timestamp_ms, JAN_15 + 4)
        self.assertEqual(history[-1].timestamp_ms, JAN_15 + 2)

    def test_capacity_keeps_newest_when_appended_out_of_order(self):
        store = self._store(max_records=2)
        for ts in (300, 200, 100):
            store.append_record(_record(ts, _net()))
        self.assertEqual([r.timestamp_ms for r in store.load_history()], [300, 200])

    def test_clear(self):
        store = self._store()
        store.append_record(_record(JAN_15, _net()))
        store.clear_history()
        self.assertEqual(store.load_history(), [])
        store.clear_history()

    def test_stored_document_shape(self):
        store = self._store()
        store.append_record(_record(JAN_15, _net()))
        with open(store.path, encoding="utf-8") as fh:
            payload = json.load(fh)
        self.assertEqual(payload[0]["timestampMs"], JAN_15)
        self.assertEqual(payload[0]["networks"][0]["bssid"], "AA:BB:CC:DD:EE:01")


class TestImportExternal(unittest.TestCase):
    def setUp(self):
        from sentry.storage.scan_store import ScanStore
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.store = ScanStore(self._tmp.name)

    def test_groups_by_utc_day(self):
        incoming = [_record(0, _net(bssid="AA:BB:CC:DD:EE:01", ts=JAN_15 + 3600_000),
                            _net(bssid="AA:BB:CC:DD:EE:02", ts=JAN_15 + DAY + 60_000))]
        added = self.store.import_external_records(incoming)
        self.assertEqual(added, 2)
        history = self.store.load_history()
        self.assertEqual([r.timestamp_ms for r in history], [JAN_15 + DAY, JAN_15])

    def test_merges_into_existing_day_record(self):
        self.store.append_record(_record(JAN_15, _net(bssid="AA:BB:CC:DD:EE:01")))
        incoming = [_record(0, _net(bssid="AA:BB:CC:DD:EE:01", ts=JAN_15 + 10),
                            _net(bssid="AA:BB:CC:DD:EE:02", ts=JAN_15 + 20))]
        self.assertEqual(self.store.import_external_records(incoming), 1)
        history = self.store.load_history()
        self.assertEqual(len(history), 1)
        self.assertEqual({n.bssid for n in history[0].networks},
                         {"AA:BB:CC:DD:EE:01", "AA:BB:CC:DD:EE:02"})

    def test_same_day_non_midnight_record_not_merged(self):
        self.store.append_record(_record(JAN_15 + 5000, _net(bssid="AA:BB:CC:DD:EE:01")))
        incoming = [_record(0, _net(bssid="AA:BB:CC:DD:EE:01", ts=JAN_15 + 10))]
        self.assertEqual(self.store.import_external_records(incoming), 1)
        self.assertEqual(len(self.store.load_history()), 2)

    def test_reimport_adds_nothing(self):
        incoming = [_record(0, _net(ts=JAN_15 + 10))]
        self.assertEqual(self.store.import_external_records(incoming), 1)
        self.assertEqual(self.store.import_external_records(incoming), 0)

    def test_duplicate_bssid_within_day(self):
        incoming = [_record(0, _net(ts=JAN_15 + 10), _net(ts=JAN_15 + 20))]
        self.assertEqual(self.store.import_external_records(incoming), 1)

    def test_empty_import(self):
        self.assertEqual(self.store.import_external_records([]), 0)
        self.assertFalse(self.store.path.exists())

    def test_trimmed_days_not_counted(self):
        from sentry.storage.scan_store import ScanStore
        store = ScanStore(self._tmp.name, max_records=1)
        store.append_record(_record(JAN_15 + 10 * DAY, _net()))
        incoming = [_record(0, _net(bssid="AA:BB:CC:DD:EE:09", ts=JAN_15))]
        self.assertEqual(store.import_external_records(incoming), 0)
        self.assertEqual(store.load_history()[0].timestamp_ms, JAN_15 + 10 * DAY)


if __name__ == "__main__":
    unittest.main()
