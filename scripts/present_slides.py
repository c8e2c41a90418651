"""Slide Presenter - inspect, navigate and export a modular slide deck.

Reads a JSON slide catalog, builds the active sequence for the full or the
reduced (online) deck, and either lists it, walks through it from key names on
stdin, preloads its assets or exports it to PPTX.
"""

from __future__ import annotations

from slidedeck.cli import run_cli


def main() -> None:
    run_cli()


if __name__ == "__main__":
    main()
