from __future__ import annotations

from pathlib import Path

from ..errors import DiscoveryError
from .model import Unit

DEFAULT_MANIFEST = "Cargo.toml"


def discover_units(contracts_root: Path, manifest: str = DEFAULT_MANIFEST) -> tuple[Unit, ...]:
    if not contracts_root.exists():
        raise DiscoveryError(f"contracts root does not exist: {contracts_root}")
    if not contracts_root.is_dir():
        raise DiscoveryError(f"contracts root is not a directory: {contracts_root}")
    try:
        entries = sorted(contracts_root.iterdir(), key=lambda p: p.as_posix())
    except OSError as exc:
        raise DiscoveryError(f"contracts root is unreadable: {contracts_root}: {exc}") from exc
    units: list[Unit] = []
    for entry in entries:
        try:
            if entry.is_dir() and (entry / manifest).is_file():
                units.append(Unit(name=entry.name, path=entry.resolve()))
        except OSError as exc:
            raise DiscoveryError(f"unable to inspect {entry}: {exc}") from exc
    return tuple(units)
