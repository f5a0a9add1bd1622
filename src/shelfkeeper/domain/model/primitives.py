"""Domain primitives: scalar aliases."""

from __future__ import annotations

type BookId = str
type EpochMillis = int
type Rating = int | float
type RawRecord = dict[str, object]
