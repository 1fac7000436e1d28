"""
Dice helpers shared by the warfare and organization sheets.

Only d20 tests and power-die rolls are needed:
- unit stat tests: d20 + ATK / POW / MOR / COM
- organization skill tests: d20 + DIP / ESP / LOR / OPR
"""

from __future__ import annotations
import random
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class RollResult:
    label: str
    formula: str
    rolls: List[int]
    bonus: int
    total: int

    @property
    def natural(self) -> Optional[int]:
        return self.rolls[0] if self.rolls else None


def signed(value: int) -> str:
    """`+2`, `+0`, `-1`"""
    return str(value) if value < 0 else f"+{value}"


def d20_test(label: str, bonus: int, rng: random.Random | None = None) -> RollResult:
    rng = rng or random
    roll = rng.randint(1, 20)
    formula = "1d20" if bonus == 0 else f"1d20 {'+' if bonus > 0 else '-'} {abs(bonus)}"
    return RollResult(label=label, formula=formula, rolls=[roll], bonus=bonus, total=roll + bonus)


def roll_die(faces: int, count: int = 1, rng: random.Random | None = None, label: str = "") -> RollResult:
    if faces < 2 or count < 1:
        raise ValueError(f"Cannot roll {count}d{faces}")
    rng = rng or random
    rolls = [rng.randint(1, faces) for _ in range(count)]
    return RollResult(label=label or f"d{faces}", formula=f"{count}d{faces}", rolls=rolls, bonus=0, total=sum(rolls))
