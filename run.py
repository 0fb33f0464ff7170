#!/usr/bin/env python3
"""
Deployer - Entry Point

Builds an image from a manifest profile, pushes it to the registry of every
target cluster and patches the target workloads.

Usage:
    python run.py --env ENV --image IMAGE --workload CLUSTER/NAMESPACE/TYPE/NAME[/CONTAINER]
"""

from deployer.cli import main


if __name__ == "__main__":
    main()
