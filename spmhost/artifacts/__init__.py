"""Artifact storage, eviction and manifest generation.

Public API:
    ArtifactStore(directory)                     -> write / read archives on disk
    clean_artifacts(directory, max_size_bytes)   -> EvictionReport
    EvictionScheduler()                          -> background eviction passes
    parse_size(text)                             -> int | None
    render_manifest(name, url, checksum)         -> Package.swift text
"""

from spmhost.artifacts.cleaner import EvictionReport, EvictionScheduler, clean_artifacts
from spmhost.artifacts.manifest import render_manifest
from spmhost.artifacts.sizes import parse_size
from spmhost.artifacts.store import ArtifactStore

__all__ = [
    "ArtifactStore",
    "EvictionReport",
    "EvictionScheduler",
    "clean_artifacts",
    "parse_size",
    "render_manifest",
]
