from boxlight.engine.normalize import normalise_brightness
from boxlight.engine.pipeline import (
    ConfigError,
    LightingConfig,
    LightingResult,
    build_transfers,
    check_config,
    load_config,
    run_lighting,
)
from boxlight.engine.solver import (
    LightSolveResult,
    SolverConfig,
    SolverStatus,
    iterate_lighting,
    solve_lighting,
    total_light,
)
from boxlight.engine.specular import SpecularConfig, apply_specular
from boxlight.engine.transfer import (
    AnalyticTransferCalculator,
    HemicubeTransferCalculator,
    TransferCalculator,
    TransferConfig,
    make_transfer_calculator,
)

__all__ = [
    "AnalyticTransferCalculator",
    "ConfigError",
    "HemicubeTransferCalculator",
    "LightSolveResult",
    "LightingConfig",
    "LightingResult",
    "SolverConfig",
    "SolverStatus",
    "SpecularConfig",
    "TransferCalculator",
    "TransferConfig",
    "apply_specular",
    "build_transfers",
    "check_config",
    "iterate_lighting",
    "load_config",
    "make_transfer_calculator",
    "normalise_brightness",
    "run_lighting",
    "solve_lighting",
    "total_light",
]
