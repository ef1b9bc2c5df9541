"""Allow ``python -m reelwall`` invocation.

Delegates to the CLI error-boundary entry point so that
``python -m reelwall`` behaves identically to the ``reelwall``
console script.
"""

from __future__ import annotations

from reelwall.cli.app import cli

if __name__ == "__main__":
    cli()
