"""
bumpwise — dependency update decisions for Composer projects

bumpwise answers, for one dependency of a ``composer.json`` /
``composer.lock`` pair, the questions an automated update bot has to get
right before opening a pull request:

    • Is there a newer version at all?
    • Does the whole dependency graph still resolve with it?
    • Which version should be proposed (newest, or smallest security fix)?
    • How must the declared requirement strings be rewritten?

The graph solver itself is Composer; bumpwise decides what to ask it and
how to interpret the answer.
"""

from __future__ import annotations

from bumpwise.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "bumpwise Contributors"
__license__ = "Apache-2.0"
__description__ = "Version-selection and requirement-rewriting engine for Composer updates."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "__version__",
]
