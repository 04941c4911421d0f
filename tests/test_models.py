"""Tests for sentry.core.models and shared.math_utils."""

import unittest


class TestNetworkObservation(unittest.TestCase):
    def test_bssid_canonicalised(self):
        from sentry.core.models import NetworkObservation
        net = NetworkObservation(bssid="aa-bb-cc-dd-ee-ff")
        self.assertEqual(net.bssid, "AA:BB:CC:DD:EE:FF")

    def test_malformed_bssid_rejected(self):
        from pydantic import ValidationError
        from sentry.core.models import NetworkObservation
        with self.assertRaises(ValidationError):
            NetworkObservation(bssid="not-a-mac")

    def test_empty_bssid_allowed(self):
        from sentry.core.models import NetworkObservation
        self.assertEqual(NetworkObservation(bssid=None).bssid, "")

    def test_derived_properties(self):
        from sentry.core.models import NetworkObservation
        from sentry.core.radio import Band
        net = NetworkObservation(ssid="Cafe", bssid="AC:D7:5B:00:00:01",
                                 capabilities="[ESS]", frequency=5180)
        self.assertTrue(net.is_open)
        self.assertEqual(net.band, Band.GHZ_5)
        self.assertEqual(net.channel, 36)
        self.assertEqual(net.oui, "AC:D7:5B")
        self.assertEqual(net.security_label, "Open")
        self.assertFalse(net.has_gps_fix)
        self.assertFalse(net.is_flagged)

    def test_unknown_standard_code(self):
        from sentry.core.models import NetworkObservation
        from sentry.core.radio import WifiStandard
        self.assertEqual(NetworkObservation(wifi_standard=6).wifi_standard, WifiStandard.AX)
        self.assertEqual(NetworkObservation(wifi_standard=3).wifi_standard, WifiStandard.UNKNOWN)

    def test_with_threats_returns_copy(self):
        from sentry.core.models import NetworkObservation, ThreatType
        net = NetworkObservation(ssid="x")
        tagged = net.with_threats([ThreatType.WPS_VULNERABLE, ThreatType.OPEN_NETWORK])
        self.assertEqual(net.threats, frozenset())
        self.assertTrue(tagged.is_flagged)
        self.assertEqual(tagged.sorted_threats,
                         [ThreatType.OPEN_NETWORK, ThreatType.WPS_VULNERABLE])

    def test_frozen(self):
        from pydantic import ValidationError
        from sentry.core.models import NetworkObservation
        net = NetworkObservation(ssid="x")
        with self.assertRaises(ValidationError):
            net.ssid = "y"

    def test_gps_must_be_finite(self):
        from pydantic import ValidationError
        from sentry.core.models import GpsFix
        with self.assertRaises(ValidationError):
            GpsFix(latitude=float("nan"), longitude=0.0)
        with self.assertRaises(ValidationError):
            GpsFix(latitude=91.0, longitude=0.0)


class TestEnums(unittest.TestCase):
    def test_threat_parse(self):
        from sentry.core.models import ThreatType
        self.assertIs(ThreatType.parse("EVIL_TWIN"), ThreatType.EVIL_TWIN)
        self.assertIs(ThreatType.parse("evil_twin"), ThreatType.EVIL_TWIN)
        self.assertIsNone(ThreatType.parse("SOMETHING_NEW"))
        self.assertIsNone(ThreatType.parse(3))

    def test_severity_buckets(self):
        from sentry.core.models import ChangeSeverity
        self.assertIs(ChangeSeverity.from_score(100), ChangeSeverity.HIGH)
        self.assertIs(ChangeSeverity.from_score(70), ChangeSeverity.HIGH)
        self.assertIs(ChangeSeverity.from_score(69), ChangeSeverity.MEDIUM)
        self.assertIs(ChangeSeverity.from_score(40), ChangeSeverity.MEDIUM)
        self.assertIs(ChangeSeverity.from_score(39), ChangeSeverity.LOW)


class TestResults(unittest.TestCase):
    def test_change_severity_derived(self):
        from sentry.core.models import ChangeSeverity, ChangeType, NetworkChange
        change = NetworkChange(ssid="a", bssid="AA:BB:CC:DD:EE:FF",
                               change_type=ChangeType.SIGNAL_ANOMALY, score=41)
        self.assertIs(change.severity, ChangeSeverity.MEDIUM)
        self.assertEqual(change.model_dump(mode="json")["severity"], "medium")

    def test_score_bounds(self):
        from pydantic import ValidationError
        from sentry.core.models import ChangeType, NetworkChange
        with self.assertRaises(ValidationError):
            NetworkChange(ssid="a", bssid="b", change_type=ChangeType.CHANNEL_SHIFT, score=101)

    def test_analysis_counts(self):
        from sentry.core.models import AnalysisResult, ChangeType, NetworkChange
        changes = tuple(
            NetworkChange(ssid="a", bssid="b", change_type=ChangeType.CHANNEL_SHIFT, score=s)
            for s in (90, 50, 20)
        )
        result = AnalysisResult(changes=changes, records_analyzed=3)
        self.assertEqual(result.change_count, 3)
        self.assertEqual(result.high_severity_count, 1)

    def test_root_data_default_is_neutral(self):
        from sentry.core.models import RootScanData
        root = RootScanData()
        self.assertFalse(root.root_active)
        self.assertEqual(root.deauth_frame_count, 0)
        self.assertEqual(root.probe_only_ssids, frozenset())

    def test_tower_key(self):
        from sentry.core.models import CellTowerRecord
        tower = CellTowerRecord(radio="lte", mcc=310, mnc=410, lac=1, cid=2, lon=0.0, lat=0.0)
        self.assertEqual(tower.radio, "LTE")
        self.assertEqual(tower.key, "LTE:310:410:1:2")

    def test_pinned_bssid_canonical(self):
        from sentry.core.models import PinnedNetwork
        pin = PinnedNetwork(bssid="aa-bb-cc-dd-ee-ff")
        self.assertEqual(pin.bssid, "AA:BB:CC:DD:EE:FF")
        self.assertGreater(pin.pinned_at_ms, 0)


class TestMathUtils(unittest.TestCase):
    def test_haversine_zero(self):
        from shared.math_utils import haversine_meters
        self.assertEqual(haversine_meters(10.0, 20.0, 10.0, 20.0), 0.0)

    def test_haversine_one_degree(self):
        from shared.math_utils import haversine_meters
        self.assertAlmostEqual(haversine_meters(0.0, 0.0, 1.0, 0.0), 111_194.9, delta=1.0)

    def test_pairwise_matches_scalar(self):
        from shared.math_utils import haversine_meters, pairwise_haversine
        points = [(0.0, 0.0), (0.01, 0.01), (51.5, -0.12)]
        matrix = pairwise_haversine(points)
        self.assertEqual(matrix.shape, (3, 3))
        for i, a in enumerate(points):
            for j, b in enumerate(points):
                self.assertAlmostEqual(matrix[i, j], haversine_meters(*a, *b), delta=1e-3)

    def test_max_pairwise(self):
        from shared.math_utils import max_pairwise_distance
        self.assertEqual(max_pairwise_distance([]), 0.0)
        self.assertEqual(max_pairwise_distance([(1.0, 1.0)]), 0.0)
        self.assertGreater(max_pairwise_distance([(0.0, 0.0), (0.0, 0.005), (0.01, 0.01)]), 1500)

    def test_empty_matrix(self):
        from shared.math_utils import pairwise_haversine
        self.assertEqual(pairwise_haversine([]).shape, (0, 0))

    def test_round_half_up(self):
        from shared.math_utils import round_half_up
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(18.75), 19)
        self.assertEqual(round_half_up(18.4), 18)

    def test_clamp(self):
        from shared.math_utils import clamp
        self.assertEqual(clamp(5, 0, 3), 3)
        self.assertEqual(clamp(-1, 0, 3), 0)
        self.assertEqual(clamp(0.5, 0.3, 0.85), 0.5)


if __name__ == "__main__":
    unittest.main()
