from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml


@dataclass(frozen=True)
class Deck:
    key: str
    name: str
    symbols: List[str]
    labels: List[str]
    activity_type: str = "Visual memory"

    @property
    def total_pairs(self) -> int:
        return len(self.symbols)


DECK_FILE_PATTERN = "deck*.yaml"
_DECK_NUMBER = re.compile(r"^deck(\d+)$")


def deck_number(path: Path) -> Optional[int]:
    """Number in a ``deckN.yaml`` file name, or None for other names."""
    match = _DECK_NUMBER.match(path.stem)
    return int(match.group(1)) if match else None


def _deck_order(path: Path) -> Tuple[bool, int, str]:
    # numbered decks first, in numeric order; odd names after, alphabetically
    number = deck_number(path)
    return (number is None, number or 0, path.stem)


def parse_deck(deck_path: Path) -> Deck:
    """Read one deck file. Raises ValueError when the file is not a playable deck."""
    raw = yaml.safe_load(deck_path.read_text(encoding="utf-8"))
    if not raw or not isinstance(raw, dict):
        raise ValueError(f"{deck_path.name}: expected YAML with 'title' and 'cards'")
    title = raw.get("title")
    cards = raw.get("cards")
    if not title or not isinstance(title, str):
        raise ValueError(f"{deck_path.name}: missing or invalid 'title'")
    if not isinstance(cards, list) or not cards:
        raise ValueError(f"{deck_path.name}: 'cards' must be a non-empty list")

    symbols: List[str] = []
    labels: List[str] = []
    for item in cards:
        if isinstance(item, dict):
            symbol = str(item.get("symbol", "")).strip()
            label = str(item.get("label", "")).strip()
        else:
            # plain strings double as their own label
            symbol = str(item).strip()
            label = symbol
        if not symbol:
            raise ValueError(f"{deck_path.name}: card without a symbol")
        symbols.append(symbol)
        labels.append(label)
    if len(set(symbols)) != len(symbols):
        raise ValueError(f"{deck_path.name}: card symbols must be unique")

    return Deck(
        key=deck_path.stem,
        name=title.strip(),
        symbols=symbols,
        labels=labels,
        activity_type=str(raw.get("activity_type") or "Visual memory").strip(),
    )


class DeckRepository:
    """Playable decks found in a directory of ``deckN.yaml`` files."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir or Path(__file__).resolve().parent.parent / "data" / "decks"
        if not self._base_dir.exists():
            raise FileNotFoundError(f"Decks directory not found: {self._base_dir}")
        paths = sorted(self._base_dir.glob(DECK_FILE_PATTERN), key=_deck_order)
        self._decks: Dict[str, Deck] = {path.stem: parse_deck(path) for path in paths}
        if not self._decks:
            raise ValueError(f"No deck files ({DECK_FILE_PATTERN}) found in {self._base_dir}")

    def all(self) -> List[Deck]:
        return list(self._decks.values())

    def get(self, key: str) -> Deck:
        return self._decks[key]
