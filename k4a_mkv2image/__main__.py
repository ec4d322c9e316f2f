"""Allow ``python -m k4a_mkv2image`` to run the extractor."""

from __future__ import annotations

from k4a_mkv2image.app.master import cli


if __name__ == "__main__":
    cli()
