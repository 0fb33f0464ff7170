"""Single-pipeline build, push and patch deployer."""

from .errors import DeployerError
from .images import ImageNames
from .pipeline import DeployPipeline, PipelineState, RunConfig, Stage
from .utils import LimitOption, WorkloadAddress, parse_workload

__version__ = "0.1.0"

__all__ = [
    "DeployerError",
    "DeployPipeline",
    "ImageNames",
    "LimitOption",
    "PipelineState",
    "RunConfig",
    "Stage",
    "WorkloadAddress",
    "parse_workload",
]
