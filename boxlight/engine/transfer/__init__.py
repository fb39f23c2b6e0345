from boxlight.engine.transfer.analytic import AnalyticTransferCalculator
from boxlight.engine.transfer.base import TransferCalculator, TransferConfig
from boxlight.engine.transfer.hemicube import HemicubeTransferCalculator
from boxlight.engine.transfer.raster import OffscreenContext, RasterContextError
from boxlight.geometry.core import Mesh


def make_transfer_calculator(mesh: Mesh, config: TransferConfig) -> TransferCalculator:
    """Build the calculator named by `config.method`."""
    method = str(config.method).lower()
    if method == "hemicube":
        return HemicubeTransferCalculator(mesh, config.resolution, near=config.near)
    if method == "analytic":
        return AnalyticTransferCalculator(mesh)
    raise ValueError(f"unknown transfer method {config.method!r}; expected 'hemicube' or 'analytic'")


__all__ = [
    "AnalyticTransferCalculator",
    "HemicubeTransferCalculator",
    "OffscreenContext",
    "RasterContextError",
    "TransferCalculator",
    "TransferConfig",
    "make_transfer_calculator",
]
