"""Deployment pipeline: build once, push to every cluster, patch workloads."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .cleanup import ResourceRegistry
from .config import (
    DEFAULT_MANIFEST,
    PRESET_DIR,
    TEMP_PREFIX_DOCKERCONFIG,
    TEMP_PREFIX_KUBECONFIG,
)
from .errors import DeployerError
from .executor import Executor
from .images import ImageNames
from .manifest import generate_files, load_manifest
from .patch import build_patch, patch_to_json
from .preset import Preset, load_preset
from .utils import LimitOption, WorkloadAddress

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    INIT = "Init"
    MANIFEST_LOADED = "ManifestLoaded"
    FILES_GENERATED = "FilesGenerated"
    BUILT = "Built"
    PACKAGED = "Packaged"
    PRESET_LOADED = "PresetLoaded"
    PUSHED = "Pushed"
    PATCHED = "Patched"
    DONE = "Done"
    FAILED = "Failed"


@dataclass(frozen=True)
class RunConfig:
    """Immutable settings of one pipeline run."""
    image: str
    env: str
    manifest: str = DEFAULT_MANIFEST
    build_number: str = ""
    workloads: Tuple[WorkloadAddress, ...] = ()
    cpu: LimitOption = LimitOption()
    mem: LimitOption = LimitOption()
    skip_deploy: bool = False
    preset_dir: str = PRESET_DIR


@dataclass
class PipelineState:
    """Mutable state of a run, owned by the pipeline."""
    stage: Stage = Stage.INIT
    completed_stage: Optional[Stage] = None
    error: Optional[DeployerError] = None
    used_image_tags: List[str] = field(default_factory=list)
    pushed_images: List[str] = field(default_factory=list)
    patched_workloads: List[WorkloadAddress] = field(default_factory=list)
    resources: ResourceRegistry = field(default_factory=ResourceRegistry)

    @property
    def succeeded(self) -> bool:
        return self.stage == Stage.DONE


class DeployPipeline:
    """
    Runs the stages of a deployment in order and stops at the first failure.

    Whatever happens, temporary files are deleted and every image tag created
    during the run is removed from the local docker daemon.
    """

    def __init__(
        self,
        run_config: RunConfig,
        executor=None,
        preset_loader: Callable[[str, str], Preset] = load_preset,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the pipeline.

        Args:
            run_config: Settings of this run
            executor: Object providing build, package, tag_image, push_image,
                remove_image and patch_workload; defaults to Executor()
            preset_loader: Called with (cluster, preset_dir)
            clock: Time source for the rollout annotation
        """
        self.run_config = run_config
        self.executor = executor if executor is not None else Executor()
        self.preset_loader = preset_loader
        self.clock = clock
        self._presets: Dict[str, Preset] = {}

    def run(self) -> PipelineState:
        """
        Execute the pipeline.

        Returns:
            Final PipelineState, with ``error`` set on failure
        """
        state = PipelineState()
        try:
            self._execute(state)
            self._advance(state, Stage.DONE)
        except DeployerError as e:
            logger.error(f"Pipeline failed after stage {state.stage.value}: {e}")
            state.completed_stage = state.stage
            state.error = e
            state.stage = Stage.FAILED
        finally:
            failures = state.resources.release()
            if failures:
                logger.warning(f"Cleanup finished with {failures} failure(s)")
        return state

    def _advance(self, state: PipelineState, stage: Stage) -> None:
        logger.debug(f"Stage {state.stage.value} -> {stage.value}")
        state.stage = stage

    def _execute(self, state: PipelineState) -> None:
        cfg = self.run_config
        image_names = ImageNames.for_build(cfg.image, cfg.env, cfg.build_number)

        logger.info(f"Loading manifest: {cfg.manifest}")
        manifest = load_manifest(cfg.manifest)
        self._advance(state, Stage.MANIFEST_LOADED)

        logger.info(f"Using environment: {cfg.env}")
        build_file, package_file = generate_files(manifest.profile(cfg.env), cfg.env, state.resources)
        logger.info(f"Wrote build file: {build_file}")
        logger.info(f"Wrote package file: {package_file}")
        self._advance(state, Stage.FILES_GENERATED)

        logger.info("Running build")
        self.executor.build(build_file)
        logger.info("Build finished")
        self._advance(state, Stage.BUILT)

        logger.info("Running package")
        primary = image_names.primary()
        self.executor.package(package_file, primary)
        state.used_image_tags.append(primary)
        state.resources.register("built images", lambda: self._remove_images(state))
        logger.info(f"Package finished: {primary}")
        self._advance(state, Stage.PACKAGED)

        for workload in cfg.workloads:
            self._deploy_workload(state, workload, image_names)

    def _deploy_workload(self, state: PipelineState, workload: WorkloadAddress, image_names: ImageNames) -> None:
        cfg = self.run_config
        logger.info(f"Deploying to: {workload}")

        preset = self._load_preset(workload.cluster)
        self._advance(state, Stage.PRESET_LOADED)

        full_names = image_names.derive(preset.registry)

        config_dir, config_file = state.resources.write_dir_file(
            preset.generate_dockerconfig(), TEMP_PREFIX_DOCKERCONFIG, "config.json"
        )
        logger.info(f"Wrote docker config: {config_file}")

        primary = image_names.primary()
        for full_name in full_names:
            logger.info(f"Pushing image: {full_name}")
            self.executor.tag_image(primary, full_name)
            state.used_image_tags.append(full_name)
            self.executor.push_image(full_name, config_dir)
            state.pushed_images.append(full_name)
        self._advance(state, Stage.PUSHED)

        if cfg.skip_deploy:
            logger.info(f"Skipping deploy of {workload}")
            return

        kubeconfig = state.resources.write_file(
            preset.generate_kubeconfig(), TEMP_PREFIX_KUBECONFIG, ".yml"
        )
        logger.info(f"Wrote kubeconfig: {kubeconfig}")

        patch = build_patch(full_names.primary(), workload, preset, cfg.cpu, cfg.mem, now=self.clock())
        self.executor.patch_workload(
            kubeconfig,
            workload.namespace,
            workload.name,
            workload.kind,
            patch_to_json(patch),
        )
        state.patched_workloads.append(workload)
        logger.info(f"Patched {workload.kind} {workload.namespace}/{workload.name}")
        self._advance(state, Stage.PATCHED)

    def _load_preset(self, cluster: str) -> Preset:
        """Load a preset once per cluster."""
        if cluster not in self._presets:
            self._presets[cluster] = self.preset_loader(cluster, self.run_config.preset_dir)
            logger.info(f"Loaded preset for cluster: {cluster}")
        return self._presets[cluster]

    def _remove_images(self, state: PipelineState) -> None:
        """Remove every used tag, logging failures individually."""
        logger.info("Removing images")
        for tag in dict.fromkeys(state.used_image_tags):
            try:
                self.executor.remove_image(tag)
            except DeployerError as e:
                logger.warning(f"Failed to remove image {tag}: {e}")
