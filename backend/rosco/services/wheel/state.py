from enum import Enum
from typing import Dict, Optional

# Spanish alphabet without the Ñ
LETTERS = tuple('ABCDEFGHIJKLMNOPQRSTUVWXYZ')

ROUND_DURATION_SEC = 150


class LetterStatus(str, Enum):
    PENDING = 'pending'
    PASSED = 'passed'
    CORRECT = 'correct'
    INCORRECT = 'incorrect'

    @property
    def in_play(self) -> bool:
        return self in (LetterStatus.PENDING, LetterStatus.PASSED)


class Verdict(str, Enum):
    CORRECT = 'correct'
    INCORRECT = 'incorrect'
    PASS = 'pass'

    @classmethod
    def parse(cls, value) -> 'Verdict':
        """Accept a Verdict or its wire value; raise ValueError otherwise."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value.strip().lower())
        raise ValueError(f"{value!r} is not a valid Verdict")

    def to_status(self) -> LetterStatus:
        if self is Verdict.PASS:
            return LetterStatus.PASSED
        return LetterStatus(self.value)


class EndReason(str, Enum):
    TIME_EXPIRED = 'time_expired'
    ALL_LETTERS_RESOLVED = 'all_letters_resolved'


END_MESSAGES = {
    EndReason.TIME_EXPIRED: '¡Se terminó el tiempo! Fin del juego.',
    EndReason.ALL_LETTERS_RESOLVED: '¡Terminaste el rosco!',
}


def format_clock(seconds: int) -> str:
    """Render seconds as a zero padded mm:ss clock."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class RoundState:
    """Per-letter statuses plus the pointer, clock and lifecycle flags of one round.

    A state is replaced wholesale on restart; only RoundController mutates it.
    """

    def __init__(self, duration: int = ROUND_DURATION_SEC, letters=LETTERS):
        self.letters = tuple(letters)
        self.duration = int(duration)
        self.status_of: Dict[str, LetterStatus] = {letter: LetterStatus.PENDING for letter in self.letters}
        self.current_index = 0
        self.time_remaining = self.duration
        self.started = False
        self.is_over = False
        self.end_reason: Optional[EndReason] = None

    @classmethod
    def fresh(cls, duration: int = ROUND_DURATION_SEC, letters=LETTERS) -> 'RoundState':
        return cls(duration=duration, letters=letters)

    def __len__(self):
        return len(self.letters)

    def status_at(self, index: int) -> LetterStatus:
        return self.status_of[self.letters[index % len(self.letters)]]

    @property
    def current_letter(self) -> Optional[str]:
        if not self.started:
            return None
        return self.letters[self.current_index]

    @property
    def accepting_answers(self) -> bool:
        return self.started and not self.is_over

    def tally(self) -> Dict[str, int]:
        counts = {s.value: 0 for s in LetterStatus}
        for status in self.status_of.values():
            counts[status.value] += 1
        return counts

    def to_dict(self):
        current = self.current_letter
        return {
            'letters': [
                {
                    'letter': letter,
                    'status': self.status_of[letter].value,
                    'is_current': letter == current,
                }
                for letter in self.letters
            ],
            'current_index': self.current_index,
            'current_letter': current,
            'prompt': f'Pregunta para la letra "{current}"' if current else None,
            'time_remaining': self.time_remaining,
            'clock': format_clock(self.time_remaining),
            'started': self.started,
            'is_over': self.is_over,
            'accepting_answers': self.accepting_answers,
            'end_reason': self.end_reason.value if self.end_reason else None,
            'tally': self.tally(),
        }
