"""Command line interface for the deployer."""

import argparse
import logging
import os
import sys
from typing import Mapping, Optional, Sequence, Tuple

from .config import BUILD_NUMBER_ENV, DEFAULT_MANIFEST, JOB_NAME_ENV, PRESET_DIR
from .errors import DeployerError, MissingParameters
from .pipeline import DeployPipeline, RunConfig
from .utils import LimitOption, parse_workload

logger = logging.getLogger(__name__)


class WorkloadAction(argparse.Action):
    """Collects --workload and --init-workload into one ordered list."""

    def __init__(self, option_strings, dest, is_init: bool = False, **kwargs):
        self.is_init = is_init
        super().__init__(option_strings, dest, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        try:
            workload = parse_workload(values, is_init=self.is_init)
        except DeployerError as e:
            raise argparse.ArgumentError(self, str(e))
        workloads = list(getattr(namespace, self.dest, None) or [])
        workloads.append(workload)
        setattr(namespace, self.dest, workloads)


def _limit(value: str) -> LimitOption:
    try:
        return LimitOption.parse(value)
    except DeployerError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deployer",
        description="Deployer - Build an image, push it to cluster registries and patch workloads"
    )
    parser.add_argument(
        "--manifest",
        default=DEFAULT_MANIFEST,
        help=f"Manifest file (default: {DEFAULT_MANIFEST})"
    )
    parser.add_argument(
        "--image",
        default="",
        help="Image name (default: first part of $JOB_NAME)"
    )
    parser.add_argument(
        "--env",
        default="",
        help="Environment name (default: second part of $JOB_NAME)"
    )
    parser.add_argument(
        "--skip-deploy",
        action="store_true",
        help="Push images but do not patch workloads"
    )
    parser.add_argument(
        "--workload",
        dest="workloads",
        action=WorkloadAction,
        default=[],
        metavar="CLUSTER/NAMESPACE/TYPE/NAME[/CONTAINER]",
        help="Target workload, may be repeated"
    )
    parser.add_argument(
        "--init-workload",
        dest="workloads",
        action=WorkloadAction,
        is_init=True,
        metavar="CLUSTER/NAMESPACE/TYPE/NAME/CONTAINER",
        help="Target workload whose init container is updated, may be repeated"
    )
    parser.add_argument(
        "--cpu",
        type=_limit,
        default=LimitOption(),
        metavar="MIN:MAX",
        help="CPU request and limit in m (millicores)"
    )
    parser.add_argument(
        "--mem",
        type=_limit,
        default=LimitOption(),
        metavar="MIN:MAX",
        help="Memory request and limit in Mi (mebibytes)"
    )
    parser.add_argument(
        "--preset-dir",
        default=PRESET_DIR,
        help=f"Directory of cluster presets (default: {PRESET_DIR})"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose/debug logging"
    )
    return parser


def resolve_image_and_env(image: str, env: str, environ: Mapping[str, str]) -> Tuple[str, str]:
    """
    Fill in a missing image or environment from ``$JOB_NAME``.

    Examples:
        ("", "", {"JOB_NAME": "app.staging"}) -> ("app", "staging")

    Raises:
        MissingParameters: If JOB_NAME is not of the form IMAGE.ENV
    """
    if image and env:
        return image, env

    splits = environ.get(JOB_NAME_ENV, "").split(".")
    if len(splits) != 2:
        raise MissingParameters(
            f"missing --image or --env, and ${JOB_NAME_ENV} is not of the form IMAGE.ENV"
        )
    return image or splits[0], env or splits[1]


def build_run_config(args: argparse.Namespace, environ: Mapping[str, str]) -> RunConfig:
    image, env = resolve_image_and_env(args.image, args.env, environ)

    for name, option in (("cpu", args.cpu), ("mem", args.mem)):
        if option.supplied and option.is_zero():
            logger.warning(f"--{name} 0:0 keeps the preset defaults")

    return RunConfig(
        image=image,
        env=env,
        manifest=args.manifest,
        build_number=environ.get(BUILD_NUMBER_ENV, ""),
        workloads=tuple(args.workloads),
        cpu=args.cpu,
        mem=args.mem,
        skip_deploy=args.skip_deploy,
        preset_dir=args.preset_dir,
    )


def run(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    executor=None
) -> int:
    """
    Parse arguments and run the pipeline.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    if environ is None:
        environ = os.environ

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        run_config = build_run_config(args, environ)
    except DeployerError as e:
        logger.error(f"exited with error: {e}")
        return 1

    state = DeployPipeline(run_config, executor=executor).run()
    if state.error is not None:
        logger.error(f"exited with error: {state.error}")
        return 1

    logger.info("exited")
    return 0


def main():
    """Main entry point."""
    logging.basicConfig(
        stream=sys.stdout,
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    try:
        sys.exit(run())
    except KeyboardInterrupt:
        logger.info("Deployer stopped by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"exited with error: {e}")
        sys.exit(1)
