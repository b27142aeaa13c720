# vt_ChargeStore/main.py
from __future__ import annotations
from pathlib import Path
import argparse
import logging
import sys
import yaml

from vt_ChargeStore.core.anonymize import ChargeDataSubmitter, DATA_ADDRESS, CHARGE_DATA_SUBJECT
from vt_ChargeStore.core.errors import StoreOpenError
from vt_ChargeStore.core.export import export_table
from vt_ChargeStore.core.model import ChargeCycle
from vt_ChargeStore.core.period import period_from_strings
from vt_ChargeStore.core.prefs import Preferences
from vt_ChargeStore.core.store import ChargeLogStore, charge_log_path, read_charge_log
from vt_ChargeStore.transport.mailer import mailer_from_config
from vt_ChargeStore.utils.state import PersistentState, resolve_export_path

DEFAULT_CONFIG = Path(__file__).resolve().parent / "config.yaml"


def load_config(cfg_path: Path) -> dict:
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _storage_dir(cfg: dict) -> Path:
    return Path(str(cfg.get("storage", {}).get("directory", "."))).expanduser()


def _vin(cfg: dict) -> str:
    vin = str(cfg.get("vehicle", {}).get("vin", "")).strip()
    if not vin:
        raise SystemExit("[ERR] vehicle.vin is not set in the config")
    return vin


def build_submitter(cfg: dict) -> ChargeDataSubmitter:
    veh = cfg.get("vehicle", {})
    sub = cfg.get("submission", {})
    return ChargeDataSubmitter(
        prefs=Preferences.from_config(cfg),
        mailer=mailer_from_config(cfg),
        battery=str(veh.get("battery", "")),
        uuid=str(veh.get("uuid", "")),
        address=str(sub.get("address", DATA_ADDRESS)),
        subject=str(sub.get("subject", CHARGE_DATA_SUBJECT)),
    )


def _period(args, cfg: dict):
    tz = cfg.get("export", {}).get("timezone")
    return period_from_strings(args.start, args.end, tz=tz)


# ---------- commands ----------
def cmd_append(args, cfg: dict, verbose: bool) -> int:
    lines = [args.json] if args.json else [ln for ln in sys.stdin.read().splitlines() if ln.strip()]
    cycles = []
    for ln in lines:
        try:
            cycles.append(ChargeCycle.from_json(ln))
        except ValueError as e:
            print(f"[WARN] skipping input line: {e}")
    with ChargeLogStore.open(_vin(cfg), _storage_dir(cfg), on_append=[build_submitter(cfg)]) as store:
        for c in cycles:
            store.append(c)
        if verbose:
            print(f"[append] {len(cycles)} cycle(s) → {store.path}")
    return 0


def cmd_list(args, cfg: dict, verbose: bool) -> int:
    path = charge_log_path(_vin(cfg), _storage_dir(cfg))
    charges = read_charge_log(path, _period(args, cfg))
    for c in charges:
        print(c.to_json())
    if verbose:
        print(f"[list] {len(charges)} cycle(s) from {path}", file=sys.stderr)
    return 0


def cmd_export(args, cfg: dict, verbose: bool) -> int:
    state_file = Path(str(cfg.get("storage", {}).get("state_file", _storage_dir(cfg) / "state.yaml"))).expanduser()
    dest = resolve_export_path(args.dest, PersistentState(state_file))
    path = charge_log_path(_vin(cfg), _storage_dir(cfg))
    charges = read_charge_log(path, _period(args, cfg))
    if verbose:
        print(f"[export] {len(charges)} cycle(s) from {path}")
    if export_table(charges, dest, tz=cfg.get("export", {}).get("timezone")):
        print(f"[OK] Your data has been exported → {dest}")
        return 0
    print(f"[ERR] Unable to save to: {dest}")
    return 1


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="vt_ChargeStore", description="Charge cycle log: append, list, export.")
    ap.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="config.yaml to use")
    sub = ap.add_subparsers(dest="command", required=True)

    p_app = sub.add_parser("append", help="append charge cycles (JSON lines on stdin or --json)")
    p_app.add_argument("--json", default=None, help="one charge cycle as a JSON object")
    p_app.set_defaults(func=cmd_append)

    for name, func, hlp in (("list", cmd_list, "print charge cycles as JSON lines"),
                            ("export", cmd_export, "export charge cycles to .xlsx/.csv/.mat")):
        p = sub.add_parser(name, help=hlp)
        if name == "export":
            p.add_argument("dest", help="output file; a bare name goes to the last export directory")
        p.add_argument("--start", default=None, help="include cycles starting at or after this time")
        p.add_argument("--end", default=None, help="include cycles starting before this time")
        p.set_defaults(func=func)
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)

    log_cfg = cfg.get("logging", {})
    verbose = bool(log_cfg.get("verbose", True))
    logging.basicConfig(level=str(log_cfg.get("level", "INFO")).upper(),
                        format="%(levelname)s %(name)s: %(message)s")
    if verbose:
        print(f"[cfg] config={args.config}", file=sys.stderr)

    try:
        return args.func(args, cfg, verbose)
    except StoreOpenError as e:
        print(f"[ERR] {e}")
        return 1
    except ValueError as e:
        print(f"[ERR] {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
