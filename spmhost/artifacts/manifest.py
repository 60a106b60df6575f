"""Package.swift manifests for uploaded binary targets.

The upload response is a ready-to-use manifest declaring a single binary
target that points back at the stored archive. Downstream tooling consumes
the text as-is, so the layout below must not change.
"""

from spmhost.artifacts.store import ARCHIVE_EXTENSION

SWIFT_TOOLS_VERSION = "5.9"

_MANIFEST_TEMPLATE = """\
// swift-tools-version: {tools_version}
import PackageDescription

let package = Package(
    name: "{name}",
    products: [
        .library(
            name: "{name}",
            targets: ["{name}"]
        ),
    ],
    targets: [
        .binaryTarget(
            name: "{name}",
            url: "{url}",
            checksum: "{checksum}"
        )
    ]
)"""


def package_name_for(filename: str) -> str:
    """Strip the archive extension: ``MyKit.xcframework.zip`` -> ``MyKit.xcframework``."""
    if filename.lower().endswith(ARCHIVE_EXTENSION):
        return filename[: -len(ARCHIVE_EXTENSION)]
    return filename


def render_manifest(package_name: str, url: str, checksum: str) -> str:
    return _MANIFEST_TEMPLATE.format(
        tools_version=SWIFT_TOOLS_VERSION,
        name=package_name,
        url=url,
        checksum=checksum,
    )


def public_url(scheme: str, host: str, filename: str) -> str:
    return f"{scheme}://{host}/artifacts/{filename}"
