"""Error kinds raised by the deployer pipeline."""


class DeployerError(Exception):
    """Base class for every deployer failure."""


class MissingParameters(DeployerError):
    """Image or environment name could not be resolved."""


class MalformedAddress(DeployerError):
    """Workload address does not have 4 or 5 segments."""


class MalformedLimit(DeployerError):
    """Resource limit is not a MIN:MAX pair of non-negative integers."""


class ManifestLoadError(DeployerError):
    """Manifest file is unreadable or malformed."""


class UnknownEnvironment(DeployerError):
    """Manifest has no profile for the requested environment."""


class UnknownCluster(DeployerError):
    """No preset is configured for the requested cluster."""


class EmptyImageNames(DeployerError):
    """An image name ledger was used before any tag was added."""


class BuildFailed(DeployerError):
    """Build script exited unsuccessfully."""


class PackageFailed(DeployerError):
    """Image build exited unsuccessfully."""


class PushFailed(DeployerError):
    """Image tag or push exited unsuccessfully."""


class PatchFailed(DeployerError):
    """Cluster rejected the workload patch."""


class TempResourceError(DeployerError):
    """Temporary file or directory could not be created."""
