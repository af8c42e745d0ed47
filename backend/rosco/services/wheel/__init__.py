"""Rosco round domain: letter wheel state, turn advancement and countdown.

Nothing in this package imports Flask. The HTTP routes and socket handlers
drive a RoundController and render its snapshot; the countdown is an injected
ticker so tests can step it by hand.
"""

from .state import LETTERS, LetterStatus, Verdict, EndReason, RoundState
from .turns import advance, has_letters_in_play
from .timer import BackgroundTicker, ManualTicker
from .controller import RoundController

__all__ = [
    'LETTERS',
    'LetterStatus',
    'Verdict',
    'EndReason',
    'RoundState',
    'advance',
    'has_letters_in_play',
    'BackgroundTicker',
    'ManualTicker',
    'RoundController',
]
