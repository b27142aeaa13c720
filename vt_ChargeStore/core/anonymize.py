# vt_ChargeStore/core/anonymize.py
from __future__ import annotations
from dataclasses import replace
import json
import logging
import numpy as np

from .model import ChargeCycle
from .prefs import Preferences

_LOG = logging.getLogger(__name__)

DATA_ADDRESS = "data@visibletesla.com"
CHARGE_DATA_SUBJECT = "Charge Data Submission"


def _offset(rng, pow10: float) -> float:
    r = 0.5 + rng.random() / 2          # [0.5, 1.0)
    sign = -1.0 if rng.random() > 0.5 else 1.0
    return sign * r / pow10


def dither_location(cycle: ChargeCycle, prefs: Preferences, rng) -> ChargeCycle:
    """
    Return a copy of ``cycle`` with reduced location precision.

    Location disabled -> lat/lng zeroed. Supercharger sessions and cycles
    without a location (both exactly 0) pass through. Otherwise each axis
    moves by a random amount in [0.5, 1) / 10**dither_amount, sign chosen
    per axis. A larger dither_amount therefore means a smaller offset.
    """
    if not prefs.include_loc_data:
        return replace(cycle, lat=0.0, lng=0.0)
    if cycle.super_charger or (cycle.lat == 0 and cycle.lng == 0):
        return cycle

    pow10 = 10.0 ** prefs.dither_amount
    lat = cycle.lat + _offset(rng, pow10)
    lng = cycle.lng + _offset(rng, pow10)
    return replace(cycle, lat=lat, lng=lng)


def build_submission(cycle: ChargeCycle, battery: str, uuid: str) -> dict:
    record = cycle.to_dict()
    record["battery"] = battery
    record["uuid"] = uuid
    return record


class ChargeDataSubmitter:
    """Post-append hook that forwards an anonymized copy of each cycle."""

    def __init__(self, prefs: Preferences, mailer, battery: str, uuid: str, rng=None,
                 address: str = DATA_ADDRESS, subject: str = CHARGE_DATA_SUBJECT):
        self.prefs = prefs
        self.mailer = mailer
        self.battery = battery
        self.uuid = uuid
        self.rng = rng if rng is not None else np.random.default_rng()
        self.address = address
        self.subject = subject

    def __call__(self, cycle: ChargeCycle) -> None:
        if not self.prefs.submit_anon_data:
            return
        anon = dither_location(cycle, self.prefs, self.rng)
        body = json.dumps(build_submission(anon, self.battery, self.uuid))
        self.mailer.send(self.address, self.subject, body)
        _LOG.info("Charge data submitted: %s", body)
