"""Tests for sentry.lookup.oui: vendor table loading and refresh."""

import os
import tempfile
import unittest

TABLE = "\n".join(["# refreshed table"] + [f"AAAA{i:02X}=Vendor {i}" for i in range(12)]
                  + ["ACD75B=Refreshed Vendor"])


class TestParseProperties(unittest.TestCase):
    def test_parse(self):
        from sentry.lookup.oui import parse_properties
        table = parse_properties("# c\n! c\nacd75b = T-Mobile\nbroken line\n=x\n001122=Acme=Co\n")
        self.assertEqual(table, {"ACD75B": "T-Mobile", "001122": "Acme=Co"})


class TestOuiResolver(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def _resolver(self, **kwargs):
        from sentry.lookup.oui import OuiResolver
        return OuiResolver(self._tmp.name, **kwargs)

    def test_bundled_lookup(self):
        resolver = self._resolver()
        self.assertEqual(resolver.lookup("00:00:0C:12:34:56"), "Cisco")
        self.assertEqual(resolver.lookup("00-03-93-12-34-56"), "Apple")

    def test_unknown_and_malformed(self):
        resolver = self._resolver()
        self.assertEqual(resolver.lookup("FE:FE:FE:00:00:00"), "")
        self.assertEqual(resolver.lookup("garbage"), "")
        self.assertEqual(resolver.lookup(""), "")

    def test_lazy_load(self):
        resolver = self._resolver()
        self.assertFalse(resolver.table.is_loaded)
        resolver.lookup("00:00:0C:12:34:56")
        self.assertTrue(resolver.table.is_loaded)

    def test_refresh_replaces_table(self):
        resolver = self._resolver()
        resolver.lookup("00:00:0C:12:34:56")
        self.assertTrue(resolver.refresh(TABLE))
        self.assertEqual(resolver.lookup("AC:D7:5B:00:00:01"), "Refreshed Vendor")
        self.assertEqual(resolver.lookup("00:00:0C:12:34:56"), "")

    def test_cache_used_by_new_resolver(self):
        self._resolver().refresh(TABLE)
        self.assertEqual(self._resolver().lookup("AA:AA:05:00:00:01"), "Vendor 5")

    def test_short_refresh_rejected(self):
        resolver = self._resolver()
        self.assertFalse(resolver.refresh("<html>Service Unavailable</html>\nA=B\n"))
        self.assertFalse(os.path.exists(resolver.cache_path))
        self.assertEqual(resolver.lookup("00:00:0C:12:34:56"), "Cisco")

    def test_rejected_refresh_keeps_previous_cache(self):
        resolver = self._resolver()
        resolver.refresh(TABLE)
        self.assertFalse(resolver.refresh("X=Y"))
        self.assertEqual(resolver.lookup("AC:D7:5B:00:00:01"), "Refreshed Vendor")

    def test_empty_cache_file_falls_back(self):
        resolver = self._resolver()
        open(resolver.cache_path, "w").close()
        self.assertEqual(resolver.lookup("00:00:0C:12:34:56"), "Cisco")

    def test_no_data_dir(self):
        from sentry.lookup.oui import OuiResolver
        resolver = OuiResolver(None)
        self.assertIsNone(resolver.cache_path)
        self.assertFalse(resolver.refresh(TABLE))
        self.assertEqual(resolver.lookup("00:00:0C:12:34:56"), "Cisco")


if __name__ == "__main__":
    unittest.main()
