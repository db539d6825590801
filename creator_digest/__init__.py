"""
Creator Digest - duplicate clustering and digest selection for creator posts.

This package takes normalized content records harvested from several
platforms, collapses duplicates into clusters with one primary each,
selects a bounded and diverse set of primaries per digest section, and
trims generated headline bullets to a word budget.

Main entry point is the CLI via `creator-digest run` command.

Example:
    $ creator-digest run -i records.json -o output/
"""

__all__ = [
    "__version__",
    "assemble",
    "build_clusters",
    "elect_primary",
    "fingerprint",
    "parse_records",
    "select",
]
__version__ = "0.1.0"

from .core.assembly import assemble
from .core.dedup import build_clusters, elect_primary
from .core.fingerprint import fingerprint
from .core.selection import select
from .input.json_parser import parse_records
