from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..context import CheckContext
from ..model import CheckOutcome, CheckScope

BuiltinFunc = Callable[[CheckContext], CheckOutcome]


@dataclass(frozen=True)
class BuiltinCheck:
    name: str
    scope: CheckScope
    description: str
    fn: BuiltinFunc
