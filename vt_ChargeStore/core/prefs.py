# vt_ChargeStore/core/prefs.py
from __future__ import annotations
from dataclasses import dataclass


@dataclass
class Preferences:
    submit_anon_data: bool = False
    include_loc_data: bool = False
    dither_amount: float = 3.0        # exponent d: offset magnitude is in [0.5, 1) / 10**d

    @classmethod
    def from_config(cls, cfg: dict | None) -> "Preferences":
        """Read the ``preferences:`` section of config.yaml; missing keys keep defaults."""
        p = (cfg or {}).get("preferences", {}) or {}
        d = cls()
        return cls(
            submit_anon_data=bool(p.get("submit_anon_data", d.submit_anon_data)),
            include_loc_data=bool(p.get("include_loc_data", d.include_loc_data)),
            dither_amount=float(p.get("dither_amount", d.dither_amount)),
        )
