import json
from pathlib import Path
import tempfile
import unittest

import numpy as np

from vt_ChargeStore.core.anonymize import (
    CHARGE_DATA_SUBJECT, DATA_ADDRESS, ChargeDataSubmitter, build_submission, dither_location,
)
from vt_ChargeStore.core.model import ChargeCycle
from vt_ChargeStore.core.prefs import Preferences
from vt_ChargeStore.core.store import ChargeLogStore


class _SeqRng:
    """Returns the given values from random(), in order."""

    def __init__(self, values):
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


class _RecordingMailer:
    def __init__(self):
        self.sent = []

    def send(self, recipient, subject, body):
        self.sent.append((recipient, subject, body))
        return True


def _cycle(**kw):
    base = dict(start_time=1_700_000_000_000, end_time=1_700_003_600_000, lat=37.4, lng=-122.1,
                energy_added=30.0)
    base.update(kw)
    return ChargeCycle(**base)


class DitherTests(unittest.TestCase):
    def test_offsets_are_bounded_by_dither_amount(self):
        for d in (1, 2, 3, 4):
            prefs = Preferences(include_loc_data=True, dither_amount=d)
            rng = np.random.default_rng(1234 + d)
            c = _cycle()
            for _ in range(200):
                out = dither_location(c, prefs, rng)
                for before, after in ((c.lat, out.lat), (c.lng, out.lng)):
                    delta = abs(after - before)
                    self.assertGreater(delta, 0.0)
                    self.assertLessEqual(delta, 1.0 / 10 ** d + 1e-12)

    def test_each_axis_gets_its_own_magnitude_and_sign(self):
        prefs = Preferences(include_loc_data=True, dither_amount=2)
        # lat: r = 0.5, sign from 0.9 -> negative; lng: r = 0.75, sign from 0.1 -> positive
        out = dither_location(_cycle(lat=10.0, lng=20.0), prefs, _SeqRng([0.0, 0.9, 0.5, 0.1]))
        self.assertAlmostEqual(10.0 - 0.005, out.lat)
        self.assertAlmostEqual(20.0 + 0.0075, out.lng)

    def test_location_disabled_zeroes_coordinates(self):
        out = dither_location(_cycle(super_charger=True), Preferences(include_loc_data=False), _SeqRng([]))
        self.assertEqual((0.0, 0.0), (out.lat, out.lng))

    def test_supercharger_and_zero_location_pass_through(self):
        prefs = Preferences(include_loc_data=True, dither_amount=3)
        sc = _cycle(super_charger=True)
        nowhere = _cycle(lat=0.0, lng=0.0)
        self.assertEqual(sc, dither_location(sc, prefs, _SeqRng([])))
        self.assertEqual(nowhere, dither_location(nowhere, prefs, _SeqRng([])))

    def test_original_cycle_is_not_modified(self):
        c = _cycle()
        dither_location(c, Preferences(include_loc_data=True), np.random.default_rng(0))
        self.assertEqual(37.4, c.lat)


class SubmissionTests(unittest.TestCase):
    def test_build_submission_adds_battery_and_uuid(self):
        rec = build_submission(_cycle(), "85", "abc-123")
        self.assertEqual("85", rec["battery"])
        self.assertEqual("abc-123", rec["uuid"])
        self.assertEqual(1_700_000_000_000, rec["startTime"])
        self.assertEqual(["battery", "uuid"], list(rec)[-2:])

    def test_submitter_is_noop_when_disabled(self):
        mailer = _RecordingMailer()
        ChargeDataSubmitter(Preferences(submit_anon_data=False), mailer, "85", "u")(_cycle())
        self.assertEqual([], mailer.sent)

    def test_submitter_sends_anonymized_json(self):
        mailer = _RecordingMailer()
        prefs = Preferences(submit_anon_data=True, include_loc_data=False)
        with self.assertLogs("vt_ChargeStore.core.anonymize", level="INFO") as logs:
            ChargeDataSubmitter(prefs, mailer, "85", "u-1")(_cycle())
        self.assertEqual(1, len(mailer.sent))
        recipient, subject, body = mailer.sent[0]
        self.assertEqual(DATA_ADDRESS, recipient)
        self.assertEqual(CHARGE_DATA_SUBJECT, subject)
        payload = json.loads(body)
        self.assertEqual((0, 0), (payload["lat"], payload["lng"]))
        self.assertEqual("u-1", payload["uuid"])
        self.assertIn("Charge data submitted", logs.output[0])

    def test_store_hook_keeps_log_precise_and_sends_dithered_copy(self):
        mailer = _RecordingMailer()
        prefs = Preferences(submit_anon_data=True, include_loc_data=True, dither_amount=3)
        submitter = ChargeDataSubmitter(prefs, mailer, "85", "u-1", rng=np.random.default_rng(7))
        c = _cycle()
        with tempfile.TemporaryDirectory() as tmpdir:
            with ChargeLogStore.open("VIN1", Path(tmpdir), on_append=[submitter]) as store:
                store.append(c)
                self.assertEqual([c], store.load())
        sent = ChargeCycle.from_json(mailer.sent[0][2])
        self.assertNotEqual(c.lat, sent.lat)
        self.assertLessEqual(abs(c.lat - sent.lat), 1e-3)


if __name__ == "__main__":
    unittest.main()
