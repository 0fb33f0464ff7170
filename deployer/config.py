"""Configuration settings for the deployer."""

import os

# Manifest settings
DEFAULT_MANIFEST = "deployer.yml"
DEFAULT_PROFILE = "default"
ENV_PLACEHOLDER = "DEPLOYER_ENV"
BUILD_SCRIPT_HEADER = "#!/bin/bash\nset -eu\n"

# Preset settings
PRESET_DIR = os.environ.get("DEPLOYER_PRESET_DIR", "/etc/deployer/presets")
PRESET_SUFFIXES = (".yml", ".yaml")

# Environment variables consulted when flags are missing
JOB_NAME_ENV = "JOB_NAME"
BUILD_NUMBER_ENV = "BUILD_NUMBER"

# Patch settings
TIMESTAMP_ANNOTATION = "timestamp"
IMAGE_PULL_POLICY = "Always"
CPU_UNIT = "m"
MEMORY_UNIT = "Mi"

# Default resources if not specified in preset
DEFAULT_CPU_REQUEST = "100m"
DEFAULT_MEMORY_REQUEST = "128Mi"
DEFAULT_CPU_LIMIT = "500m"
DEFAULT_MEMORY_LIMIT = "256Mi"

# External tools
SHELL_BIN = "bash"
DOCKER_BIN = "docker"

# Temporary file naming
TEMP_PREFIX_BUILD = "deployer-build"
TEMP_PREFIX_PACKAGE = "deployer-package"
TEMP_PREFIX_DOCKERCONFIG = "deployer-dockerconfig"
TEMP_PREFIX_KUBECONFIG = "deployer-kubeconfig"
