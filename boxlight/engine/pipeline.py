"""
End-to-end lighting of a mesh.

transfer matrix -> diffuse solve -> specular highlights -> brightness
normalisation, in that order, on a single thread.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from boxlight.engine.normalize import DEFAULT_TARGET, normalise_brightness
from boxlight.engine.solver import LightSolveResult, SolverConfig, solve_lighting
from boxlight.engine.specular import SpecularConfig, apply_specular
from boxlight.engine.transfer import TransferConfig, make_transfer_calculator
from boxlight.engine.transfer.base import ProgressFn
from boxlight.engine.transfer.raster import MAX_RESOLUTION
from boxlight.geometry.core import Mesh, Vector3

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class LightingConfig:
    transfer: TransferConfig = field(default_factory=TransferConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    specular: SpecularConfig = field(default_factory=SpecularConfig)
    normalise_target: float = DEFAULT_TARGET
    camera_position: Vector3 = Vector3(0.0, 0.0, -3.0)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LightingConfig":
        if not isinstance(data, dict):
            raise ConfigError("lighting config must be a JSON object")
        _reject_unknown("config", data, {f.name for f in fields(cls)})
        kwargs: Dict[str, Any] = {}
        for key, sub in (("transfer", TransferConfig), ("solver", SolverConfig), ("specular", SpecularConfig)):
            if key in data:
                kwargs[key] = _section(key, sub, data[key])
        if "normalise_target" in data:
            kwargs["normalise_target"] = _number("normalise_target", data["normalise_target"])
        if "camera_position" in data:
            pos = data["camera_position"]
            if not isinstance(pos, (list, tuple)) or len(pos) != 3:
                raise ConfigError("'camera_position' must be a list of three numbers")
            kwargs["camera_position"] = Vector3(*(_number("camera_position", v) for v in pos))
        cfg = cls(**kwargs)
        check_config(cfg)
        return cfg

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["camera_position"] = list(self.camera_position.to_tuple())
        return out


def _reject_unknown(where: str, data: Dict[str, Any], known: set) -> None:
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown keys in {where}: {', '.join(unknown)}")


def _number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{name}' must be a number, got {value!r}")
    return float(value)


def _integer(name: str, value: Any) -> int:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{name}' must be an integer, got {value!r}")
    return value


# Fields that may be set to null in JSON.
_NULLABLE = {"max_iters"}


def _section(key: str, sub: type, section: Any) -> Any:
    """Build a sub-config from a JSON object, typing each value like its default."""
    if not isinstance(section, dict):
        raise ConfigError(f"'{key}' must be an object")
    _reject_unknown(key, section, {f.name for f in fields(sub)})
    defaults = sub()
    values: Dict[str, Any] = {}
    for name, value in section.items():
        default = getattr(defaults, name)
        where = f"{key}.{name}"
        if value is None and name in _NULLABLE:
            values[name] = None
        elif isinstance(default, str):
            if not isinstance(value, str):
                raise ConfigError(f"'{where}' must be a string, got {value!r}")
            values[name] = value
        elif isinstance(default, int) and not isinstance(default, bool):
            values[name] = _integer(where, value)
        else:
            values[name] = _number(where, value)
    return sub(**values)


def check_config(cfg: LightingConfig) -> None:
    """Reject settings no stage of the pipeline can run with."""
    t = cfg.transfer
    if t.method not in ("hemicube", "analytic"):
        raise ConfigError(f"unknown transfer method {t.method!r}; expected 'hemicube' or 'analytic'")
    if t.resolution < 2 or t.resolution % 2 or t.resolution > MAX_RESOLUTION:
        raise ConfigError(f"transfer resolution must be an even number in 2..{MAX_RESOLUTION}, got {t.resolution}")
    if not t.near > 0.0:
        raise ConfigError(f"transfer near plane must be positive, got {t.near}")
    s = cfg.solver
    if not s.convergence_target >= 0.0:
        raise ConfigError(f"solver convergence_target must be >= 0, got {s.convergence_target}")
    if s.max_iters is not None and s.max_iters < 1:
        raise ConfigError(f"solver max_iters must be >= 1 or null, got {s.max_iters}")
    if not (cfg.specular.shininess >= 0.0 and cfg.specular.factor >= 0.0):
        raise ConfigError("specular shininess and factor must be >= 0")
    if not cfg.normalise_target > 0.0:
        raise ConfigError(f"normalise_target must be positive, got {cfg.normalise_target}")


def load_config(path: Path) -> LightingConfig:
    path = Path(path).expanduser()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path}: invalid JSON ({exc})") from exc
    return LightingConfig.from_dict(data)


@dataclass(frozen=True)
class LightingResult:
    transfers: np.ndarray
    solve: LightSolveResult
    specular: np.ndarray
    scale: float
    colours: np.ndarray


def build_transfers(mesh: Mesh, config: TransferConfig, progress: Optional[ProgressFn] = None) -> np.ndarray:
    """Transfer matrix for `mesh`; the calculator is released on every exit path."""
    with make_transfer_calculator(mesh, config) as calc:
        return calc.calc_all_lights(progress=progress)


def run_lighting(
    mesh: Mesh,
    config: LightingConfig = LightingConfig(),
    *,
    transfers: Optional[np.ndarray] = None,
    progress: Optional[ProgressFn] = None,
) -> LightingResult:
    """
    Light `mesh` in place and return the intermediate artefacts.

    A precomputed `transfers` matrix skips the (dominant) transfer step.
    """
    if transfers is None:
        transfers = build_transfers(mesh, config.transfer, progress=progress)
    solve = solve_lighting(mesh, transfers, config=config.solver)
    specular = apply_specular(mesh, config.camera_position, config.specular)
    scale = normalise_brightness(mesh, config.camera_position, config.normalise_target)
    return LightingResult(
        transfers=transfers,
        solve=solve,
        specular=specular,
        scale=scale,
        colours=mesh.screen_array(),
    )
