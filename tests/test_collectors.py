"""Tests for sentry.collectors: WiGLE and OpenCellID CSV importers."""

import unittest

# 2024-01-15 00:00:00 UTC
JAN_15 = 1_705_276_800_000
DAY = 86_400_000

WIGLE_HEADER = (
    "WigleWifi-1.4,appRelease=2.64,model=Pixel,release=14,device=x,display=y,board=z,brand=g\n"
    "MAC,SSID,AuthMode,FirstSeen,Channel,RSSI,CurrentLatitude,CurrentLongitude,"
    "AltitudeMeters,AccuracyMeters,Type\n"
)


class TestWigle(unittest.TestCase):
    def test_wifi_and_bluetooth_rows(self):
        from sentry.collectors.wigle import parse_wigle_csv
        text = WIGLE_HEADER + (
            "AA:BB:CC:DD:EE:FF,HomeNet,[WPA2-PSK-CCMP][ESS],2024-01-15 10:30:00,6,-65,"
            "41.8781,-87.6298,180,5,WIFI\n"
            "11:22:33:44:55:66,Headphones,Misc,2024-01-15 10:31:00,0,-70,41.8,-87.6,180,5,BT\n"
        )
        result = parse_wigle_csv(text)
        self.assertEqual(result.imported_count, 1)
        self.assertEqual(result.skipped_count, 1)
        self.assertEqual(len(result.records), 1)
        record = result.records[0]
        self.assertEqual(record.timestamp_ms, JAN_15)
        net = record.networks[0]
        self.assertEqual(net.ssid, "HomeNet")
        self.assertEqual(net.bssid, "AA:BB:CC:DD:EE:FF")
        self.assertEqual(net.frequency, 2437)
        self.assertEqual(net.rssi, -65)
        self.assertEqual(net.timestamp, JAN_15 + (10 * 3600 + 30 * 60) * 1000)
        self.assertAlmostEqual(net.gps.latitude, 41.8781)
        self.assertAlmostEqual(net.gps.accuracy, 5.0)

    def test_days_grouped_newest_first(self):
        from sentry.collectors.wigle import parse_wigle_csv
        text = WIGLE_HEADER + (
            "AA:BB:CC:DD:EE:01,A,[ESS],2024-01-15 10:00:00,1,-60,,,,,WIFI\n"
            "AA:BB:CC:DD:EE:02,B,[ESS],2024-01-16 09:00:00,36,-60,,,,,WIFI\n"
            "AA:BB:CC:DD:EE:03,C,[ESS],2024-01-15 23:59:59,11,-60,,,,,WIFI\n"
        )
        result = parse_wigle_csv(text)
        self.assertEqual([r.timestamp_ms for r in result.records], [JAN_15 + DAY, JAN_15])
        self.assertEqual(len(result.records[1].networks), 2)
        self.assertIsNone(result.records[0].networks[0].gps)

    def test_gps_without_altitude_or_accuracy(self):
        from sentry.collectors.wigle import parse_wigle_csv
        text = WIGLE_HEADER + (
            "AA:BB:CC:DD:EE:01,A,[ESS],2024-01-15 10:00:00,6,-60,41.8781,-87.6298,,,WIFI\n"
            "AA:BB:CC:DD:EE:02,B,[ESS],2024-01-15 10:00:00,6,-60,41.8781,,180,5,WIFI\n"
        )
        first, second = parse_wigle_csv(text).records[0].networks
        self.assertAlmostEqual(first.gps.latitude, 41.8781)
        self.assertEqual((first.gps.altitude, first.gps.accuracy), (0.0, 0.0))
        self.assertIsNone(second.gps)

    def test_date_formats(self):
        from sentry.collectors.wigle import parse_first_seen
        expected = JAN_15 + (10 * 3600 + 30 * 60) * 1000
        self.assertEqual(parse_first_seen("2024-01-15 10:30:00"), expected)
        self.assertEqual(parse_first_seen("2024-01-15T10:30:00"), expected)
        self.assertEqual(parse_first_seen("01/15/2024 10:30:00"), expected)
        self.assertEqual(parse_first_seen("2024-01-15"), JAN_15)
        self.assertEqual(parse_first_seen("2024-01-15 10:30:00.123"), JAN_15)
        self.assertIsNone(parse_first_seen("yesterday"))
        self.assertIsNone(parse_first_seen(""))

    def test_quoted_ssid(self):
        from sentry.collectors.wigle import parse_wigle_csv
        text = WIGLE_HEADER + (
            'AA:BB:CC:DD:EE:01,"Cafe, ""Best"" WiFi",[ESS],2024-01-15 10:00:00,6,-60,,,,,WIFI\n'
        )
        result = parse_wigle_csv(text)
        self.assertEqual(result.records[0].networks[0].ssid, 'Cafe, "Best" WiFi')

    def test_bad_rows_skipped(self):
        from sentry.collectors.wigle import parse_wigle_csv
        text = WIGLE_HEADER + (
            ",NoMac,[ESS],2024-01-15 10:00:00,6,-60,,,,,WIFI\n"
            "AA:BB:CC:DD:EE:01,NoDate,[ESS],,6,-60,,,,,WIFI\n"
            "ZZ:ZZ,BadMac,[ESS],2024-01-15 10:00:00,6,-60,,,,,WIFI\n"
            "AA:BB:CC:DD:EE:02,Good,[ESS],2024-01-15 10:00:00,6,oops,,,,,WIFI\n"
        )
        result = parse_wigle_csv(text)
        self.assertEqual(result.imported_count, 1)
        self.assertEqual(result.skipped_count, 3)
        self.assertEqual(result.records[0].networks[0].rssi, -100)

    def test_unknown_channel_is_unknown_frequency(self):
        from sentry.collectors.wigle import parse_wigle_csv
        text = WIGLE_HEADER + "AA:BB:CC:DD:EE:01,X,[ESS],2024-01-15 10:00:00,20,-60,,,,,WIFI\n"
        self.assertEqual(parse_wigle_csv(text).records[0].networks[0].frequency, 0)

    def test_no_header(self):
        from sentry.collectors.wigle import parse_wigle_csv
        result = parse_wigle_csv("foo,bar\n1,2\n")
        self.assertEqual(result.imported_count, 0)
        self.assertEqual(result.records, ())

    def test_empty_input(self):
        from sentry.collectors.wigle import parse_wigle_csv
        result = parse_wigle_csv("")
        self.assertEqual((result.imported_count, result.skipped_count), (0, 0))


OCID_HEADER = "radio,mcc,mnc,lac,cid,lon,lat,range,samples,changeable,created,updated,averageSignal\n"


class TestOpenCellId(unittest.TestCase):
    def test_parse_rows(self):
        from sentry.collectors.opencellid import parse_opencellid_csv
        text = OCID_HEADER + (
            "LTE,310,410,12345,67890,-87.6298,41.8781,1000,10,1,1609459200,1609459200,-85\n"
            "gsm,234,15,100,200,-0.12,51.5,500,3,1,0,0,\n"
        )
        result = parse_opencellid_csv(text)
        self.assertEqual(result.imported_count, 2)
        self.assertEqual(result.skipped_count, 0)
        lte, gsm = result.towers
        self.assertEqual(lte.key, "LTE:310:410:12345:67890")
        self.assertEqual(lte.range_meters, 1000)
        self.assertEqual(lte.average_signal, -85)
        self.assertEqual(gsm.radio, "GSM")
        self.assertEqual(gsm.average_signal, 0)

    def test_bad_rows_skipped(self):
        from sentry.collectors.opencellid import parse_opencellid_csv
        text = OCID_HEADER + (
            "LTE,310,410,abc,67890,-87.6,41.8,1000,10,1,0,0,-85\n"
            "LTE,310,410\n"
            "LTE,310,410,1,2,nan,41.8,1000,10,1,0,0,-85\n"
            "UMTS,310,410,1,3,-87.6,41.8,,,,,,\n"
        )
        result = parse_opencellid_csv(text)
        self.assertEqual(result.imported_count, 1)
        self.assertEqual(result.skipped_count, 3)

    def test_missing_columns(self):
        from sentry.collectors.opencellid import parse_opencellid_csv
        result = parse_opencellid_csv("radio,mcc,mnc\nLTE,1,2\n")
        self.assertEqual(result.imported_count, 0)
        self.assertEqual(result.skipped_count, 2)

    def test_empty(self):
        from sentry.collectors.opencellid import parse_opencellid_csv
        self.assertEqual(parse_opencellid_csv("").towers, ())


if __name__ == "__main__":
    unittest.main()
