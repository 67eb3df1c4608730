"""Feedback messages shown by the evaluator, per interface language."""

from .config import DEFAULT_UI_LANGUAGE

MESSAGES = {
    'it': {
        'feedback_good': 'Esatto!',
        'feedback_bad': 'Sbagliato!',
        'feedback_try_again': 'Riprova!',
        'win_msg': 'Ottimo! 🎉',
        'hint_intro_generic': 'È un',
        'hint_intro_letter': 'Ti regalo la',
        'hint_no_consonants': 'Nessuna consonante!',
    },
    'en': {
        'feedback_good': 'Great!',
        'feedback_bad': 'Oops!',
        'feedback_try_again': 'Game over!',
        'win_msg': 'Great! 🎉',
        'hint_intro_generic': "It's a",
        'hint_intro_letter': 'The letter is',
        'hint_no_consonants': 'No consonants left!',
    },
}


def message(key: str, language: str = DEFAULT_UI_LANGUAGE) -> str:
    """Look up a message, falling back to the default interface language."""
    table = MESSAGES.get(language, MESSAGES[DEFAULT_UI_LANGUAGE])
    return table[key]
