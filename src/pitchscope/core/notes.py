"""Frequency <-> equal-tempered note conversion, referenced to A4 = 440 Hz."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

A4_FREQUENCY = 440.0
A4_INDEX = 9  # position of "A" in NOTE_NAMES


@dataclass(frozen=True)
class NoteInfo:
    """Nearest note to a frequency plus its deviation in cents."""

    note: str        # one of NOTE_NAMES
    octave: int
    cents: int       # [-50, 50]
    frequency: float

    @property
    def name(self) -> str:
        """Scientific pitch label, e.g. ``"A4"``."""
        return f"{self.note}{self.octave}"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def frequency_to_note(frequency: Optional[float]) -> Optional[NoteInfo]:
    """
    Map a frequency to its nearest note.

    Returns None for missing, non-positive or non-finite frequencies.
    """
    if frequency is None or not math.isfinite(frequency) or frequency <= 0:
        return None

    semitones = 12.0 * math.log2(frequency / A4_FREQUENCY)
    rounded = _round_half_up(semitones)
    cents = _round_half_up((semitones - rounded) * 100.0)

    offset = rounded + A4_INDEX
    return NoteInfo(
        note=NOTE_NAMES[offset % 12],
        octave=offset // 12 + 4,
        cents=cents,
        frequency=float(frequency),
    )


def note_index(note: str) -> int:
    """Position of a note name in :data:`NOTE_NAMES`."""
    try:
        return NOTE_NAMES.index(note)
    except ValueError:
        raise ValueError(f"Unknown note name: {note!r}") from None


def note_to_frequency(note: str, octave: int) -> float:
    """
    Equal-tempered frequency of ``note`` in ``octave``.

    Raises:
        ValueError: If ``note`` is not one of :data:`NOTE_NAMES`.
    """
    semitone_offset = note_index(note) - A4_INDEX + (octave - 4) * 12
    return A4_FREQUENCY * 2.0 ** (semitone_offset / 12.0)


def piano_notes() -> list[tuple[str, int, float]]:
    """The 88 keys of a standard piano, A0 (27.5 Hz) to C8, low to high."""
    keys = []
    for octave in range(0, 9):
        for index, note in enumerate(NOTE_NAMES):
            if octave == 0 and index < A4_INDEX:
                continue
            if octave == 8 and index > 0:
                continue
            keys.append((note, octave, note_to_frequency(note, octave)))
    return keys
