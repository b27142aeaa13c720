# vt_ChargeStore/core/model.py
from __future__ import annotations
from dataclasses import dataclass, fields, asdict
import json

# attribute name -> JSON key, in on-disk order (external contract for existing logs)
JSON_KEYS: dict[str, str] = {
    "start_time":   "startTime",
    "end_time":     "endTime",
    "super_charger": "superCharger",
    "phases":       "phases",
    "start_range":  "startRange",
    "end_range":    "endRange",
    "start_soc":    "startSOC",
    "end_soc":      "endSOC",
    "lat":          "lat",
    "lng":          "lng",
    "odometer":     "odometer",
    "peak_voltage": "peakVoltage",
    "avg_voltage":  "avgVoltage",
    "peak_current": "peakCurrent",
    "avg_current":  "avgCurrent",
    "energy_added": "energyAdded",
}

_INT_FIELDS = ("start_time", "end_time", "phases")


@dataclass(frozen=True)
class ChargeCycle:
    start_time: int           # ms since epoch
    end_time: int             # ms since epoch
    super_charger: bool = False
    phases: int = 0
    start_range: float = 0.0
    end_range: float = 0.0
    start_soc: float = 0.0
    end_soc: float = 0.0
    lat: float = 0.0
    lng: float = 0.0
    odometer: float = 0.0
    peak_voltage: float = 0.0
    avg_voltage: float = 0.0
    peak_current: float = 0.0
    avg_current: float = 0.0
    energy_added: float = 0.0

    def to_dict(self) -> dict:
        """JSON-ready mapping with the on-disk key names."""
        d = asdict(self)
        return {JSON_KEYS[k]: d[k] for k in JSON_KEYS}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, obj: dict) -> "ChargeCycle":
        if not isinstance(obj, dict):
            raise ValueError(f"charge record must be a JSON object, got {type(obj).__name__}")
        if "startTime" not in obj:
            raise ValueError("charge record has no startTime")

        kwargs = {}
        for f in fields(cls):
            key = JSON_KEYS[f.name]
            if key not in obj:
                continue
            kwargs[f.name] = _coerce(f.name, obj[key])
        kwargs.setdefault("end_time", kwargs["start_time"])
        return cls(**kwargs)

    @classmethod
    def from_json(cls, line: str) -> "ChargeCycle":
        """
        Parse one log line. Raises ValueError on anything that is not a
        well-formed charge record; unknown keys are ignored.
        """
        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(f"not valid JSON: {e}") from e
        return cls.from_dict(obj)


def _coerce(name: str, value):
    # bool is an int subclass, reject it for numeric fields
    if name == "super_charger":
        if not isinstance(value, bool):
            raise ValueError(f"superCharger must be boolean, got {value!r}")
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{JSON_KEYS[name]} must be numeric, got {value!r}")
    if name in _INT_FIELDS:
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{JSON_KEYS[name]} must be integral, got {value!r}")
        return int(value)
    return float(value)
