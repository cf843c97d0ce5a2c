import json
import os
import unittest
from unittest.mock import patch

from fwintegrity.common.exception import IntegrityMismatch
from fwintegrity.compare import ChangeKind, ChangeRecord, compare, diff, diff_to_failure, render
from fwintegrity.failure import SeverityPolicy
from fwintegrity.measurement_set import MeasurementSet


def _mset(d):
    mset = MeasurementSet()
    for identifier, digest in d.items():
        mset.add_checksum(identifier, digest)
    return mset


class TestDiff(unittest.TestCase):
    def test_identity(self):
        for d in [{}, {"A": "1"}, {"UEFI:PK": "aa", "ACPI:SLIC": "bb"}]:
            mset = _mset(d)
            self.assertEqual(diff(mset, mset), [])
            self.assertIsNone(compare(mset, mset))

    def test_equal_copies(self):
        self.assertEqual(diff(_mset({"A": "1", "B": "2"}), _mset({"B": "2", "A": "1"})), [])

    def test_changed_and_added(self):
        records = diff(_mset({"A": "2", "B": "3"}), _mset({"A": "1"}))
        self.assertEqual(
            records,
            [
                ChangeRecord(ChangeKind.CHANGED, "A", old="1", new="2"),
                ChangeRecord(ChangeKind.ADDED, "B", new="3"),
            ],
        )
        self.assertEqual(render(records), "A=1->2, B=MISSING->3")

    def test_removed(self):
        records = diff(_mset({"A": "1"}), _mset({"A": "1", "C": "9"}))
        self.assertEqual(records, [ChangeRecord(ChangeKind.REMOVED, "C", old="9")])
        self.assertEqual(render(records), "C=9->MISSING")

    def test_changed_reported_once(self):
        records = diff(_mset({"A": "2"}), _mset({"A": "1"}))
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].kind, ChangeKind.CHANGED)

    def test_added_before_removed(self):
        records = diff(_mset({"B": "2"}), _mset({"A": "1"}))
        self.assertEqual([r.kind for r in records], [ChangeKind.ADDED, ChangeKind.REMOVED])
        self.assertEqual(render(records), "B=MISSING->2, A=1->MISSING")

    def test_against_empty(self):
        records = diff(_mset({"A": "1"}), MeasurementSet())
        self.assertEqual(records, [ChangeRecord(ChangeKind.ADDED, "A", new="1")])
        records = diff(MeasurementSet(), _mset({"A": "1"}))
        self.assertEqual(records, [ChangeRecord(ChangeKind.REMOVED, "A", old="1")])


class TestCompare(unittest.TestCase):
    def test_mismatch(self):
        current = _mset({"UEFI:PK": "bb", "UEFI:Boot0001": "cc"})
        baseline = _mset({"UEFI:PK": "aa", "ACPI:SLIC": "dd"})
        with self.assertRaises(IntegrityMismatch) as ctx:
            compare(current, baseline)
        self.assertEqual(str(ctx.exception), "UEFI:Boot0001=MISSING->cc, UEFI:PK=aa->bb, ACPI:SLIC=dd->MISSING")
        self.assertEqual(
            [r.kind for r in ctx.exception.records],
            [ChangeKind.ADDED, ChangeKind.CHANGED, ChangeKind.REMOVED],
        )


class TestChangeRecord(unittest.TestCase):
    def test_namespace(self):
        self.assertEqual(ChangeRecord(ChangeKind.ADDED, "UEFI:PK", new="1").namespace, "UEFI")
        self.assertEqual(ChangeRecord(ChangeKind.ADDED, "plain", new="1").namespace, "")

    def test_to_dict(self):
        record = ChangeRecord(ChangeKind.CHANGED, "ACPI:SLIC", old="1", new="2")
        self.assertEqual(record.to_dict(), {"kind": "changed", "id": "ACPI:SLIC", "old": "1", "new": "2"})


class TestDiffToFailure(unittest.TestCase):
    def test_no_records(self):
        self.assertFalse(diff_to_failure([]))

    def test_event_ids(self):
        records = diff(_mset({"UEFI:PK": "2", "ACPI:SLIC": "3", "other": "4"}), _mset({"UEFI:PK": "1", "UEFI:db": "5"}))
        result = diff_to_failure(records)
        self.assertTrue(result)
        self.assertEqual(
            result.get_event_ids(),
            [
                "integrity.acpi.added",
                "integrity.uefi.changed",
                "integrity.added",
                "integrity.uefi.removed",
            ],
        )
        context = json.loads(result.events[1].context)
        self.assertEqual(context, {"id": "UEFI:PK", "old": "1", "new": "2"})

    def test_default_policy(self):
        result = diff_to_failure(diff(_mset({"ACPI:SLIC": "2"}), _mset({"ACPI:SLIC": "1"})))
        self.assertEqual(result.highest_severity.name, "emergency")

    def test_severity_policy(self):
        policy = SeverityPolicy(
            ["info", "warning", "critical"],
            [
                {"event_id": r"integrity\.uefi\..*", "severity_label": "critical"},
                {"event_id": ".*", "severity_label": "warning"},
            ],
        )
        result = diff_to_failure(diff(_mset({"ACPI:SLIC": "2"}), _mset({"ACPI:SLIC": "1"})), policy)
        self.assertEqual(result.highest_severity.name, "warning")

        result = diff_to_failure(diff(_mset({"ACPI:SLIC": "2", "UEFI:db": "3"}), _mset({"ACPI:SLIC": "1"})), policy)
        self.assertEqual(result.highest_severity.name, "critical")
        self.assertEqual(result.highest_severity_event.event_id, "integrity.uefi.added")


class TestSeverityPolicy(unittest.TestCase):
    def test_unmatched_event_gets_max_label(self):
        policy = SeverityPolicy(["low", "high"], [{"event_id": r"integrity\.acpi\..*", "severity_label": "low"}])
        self.assertEqual(policy.label_for("integrity.acpi.changed").name, "low")
        self.assertEqual(policy.label_for("integrity.uefi.changed").name, "high")

    def test_undefined_label_gets_max_label(self):
        policy = SeverityPolicy(["low", "high"], [{"event_id": ".*", "severity_label": "medium"}])
        self.assertEqual(policy.label_for("integrity.uefi.added").name, "high")

    def test_malformed_rules(self):
        self.assertRaises(ValueError, SeverityPolicy, None, [{"event_id": ".*"}])
        self.assertRaises(ValueError, SeverityPolicy, None, ["integrity.*"])
        self.assertRaises(ValueError, SeverityPolicy, None, [{"event_id": "(", "severity_label": "info"}])

    @patch("fwintegrity.config.get_config")
    def test_from_config(self, get_config_mock):
        get_config_mock.return_value.get.return_value = ""
        env = {
            "FWINTEGRITY_FWINTEGRITY_SEVERITY_LABELS": '["info", "critical"]',
            "FWINTEGRITY_FWINTEGRITY_SEVERITY_POLICY": (
                '[{"event_id": "integrity[.]acpi[.].*", "severity_label": "info"}]'
            ),
        }
        with patch.dict(os.environ, env):
            policy = SeverityPolicy.from_config()
        self.assertEqual(policy.label_for("integrity.acpi.removed").name, "info")
        self.assertEqual(policy.label_for("integrity.uefi.removed").name, "critical")

    @patch("fwintegrity.config.get_config")
    def test_from_config_defaults(self, get_config_mock):
        get_config_mock.return_value.get.return_value = ""
        policy = SeverityPolicy.from_config()
        self.assertEqual(policy.max_label.name, "emergency")
        self.assertEqual(policy.label_for("integrity.uefi.changed").name, "emergency")



if __name__ == "__main__":
    unittest.main()
