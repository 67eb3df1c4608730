"""Configuration constants for parola application."""

PRIMARY_LANGUAGE = 'it'      # Language being learned
SECONDARY_LANGUAGE = 'en'    # Translation language, always spoken locally
UI_LANGUAGES = ('it', 'en')
DEFAULT_UI_LANGUAGE = 'it'

# Difficulty progression
TIERS = ('easy', 'medium', 'hard')
WORDS_PER_DIFFICULTY_LEVEL = 5  # Wins in a tier before advancing

# Rounds
MAX_ATTEMPTS = 6
MAX_HINTS = 2
ALPHABET = 'abcdefghilmnopqrstuvz'  # Italian keyboard
VOWELS = 'aeiou'

# Stars per win by number of wrong guesses
STARS_PERFECT = 3   # 0 errors
STARS_GOOD = 2      # up to GOOD_MAX_ERRORS errors
STARS_MIN = 1
GOOD_MAX_ERRORS = 2

# Speech
AUDIO_DELAY_MS = 2000  # Between the word and its translation
TTS_MODEL = 'gemini-2.5-flash-preview-tts'
TTS_VOICE = 'Kore'
TTS_PROMPT = 'Dì con voce molto chiara e amichevole: {text}'
TTS_SAMPLE_RATE = 24000
TTS_CHANNELS = 1
LOCAL_SPEECH_RATE = 160  # words per minute
LOCAL_VOICE_LOCALES = {'it': 'it-IT', 'en': 'en-US'}

# Persistent audio cache
AUDIO_CACHE_MAX_BYTES = 50 * 1024 * 1024

LETTER_NAMES = {
    'a': 'a', 'b': 'bi', 'c': 'ci', 'd': 'di', 'e': 'e', 'f': 'effe', 'g': 'gi', 'h': 'acca',
    'i': 'i', 'l': 'elle', 'm': 'emme', 'n': 'enne', 'o': 'o', 'p': 'pi', 'q': 'cu', 'r': 'erre',
    's': 'esse', 't': 'ti', 'u': 'u', 'v': 'vu', 'z': 'zeta'
}
