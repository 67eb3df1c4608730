"""Static Italian word corpus and the immutable lexicon built from it."""

from dataclasses import dataclass
from typing import Iterator, Optional

from .config import TIERS

# Italian to English words by category: (italian, english, tier, hint)
WORD_CORPUS = {
    'animals': {
        'name': {'it': 'Animali', 'en': 'Animals'},
        'items': [
            ('gatto', 'cat', 'easy', 'Fa le fusa e dice miao.'),
            ('cane', 'dog', 'easy', "Il migliore amico dell'uomo."),
            ('orso', 'bear', 'easy', 'Un grande animale che va in letargo.'),
            ('pesce', 'fish', 'easy', "Vive nell'acqua e nuota."),
            ('mucca', 'cow', 'easy', 'Ci dà il latte e fa muu.'),
            ('maiale', 'pig', 'easy', 'È rosa e ama il fango.'),
            ('topo', 'mouse', 'easy', 'Piccolo e ama il formaggio.'),
            ('farfalla', 'butterfly', 'medium', 'Ha ali colorate e vola sui fiori.'),
            ('coniglio', 'rabbit', 'medium', 'Ha lunghe orecchie e ama le carote.'),
            ('tartaruga', 'turtle', 'medium', 'Cammina piano e ha un guscio duro.'),
            ('scoiattolo', 'squirrel', 'hard', 'Raccoglie ghiande e vive sugli alberi.'),
            ('pipistrello', 'bat', 'hard', 'Vola di notte e dorme a testa in giù.'),
        ]
    },
    'colors': {
        'name': {'it': 'Colori', 'en': 'Colors'},
        'items': [
            ('rosso', 'red', 'easy', 'Il colore delle fragole.'),
            ('blu', 'blue', 'easy', 'Il colore del mare profondo.'),
            ('verde', 'green', 'easy', "Il colore dell'erba."),
            ('giallo', 'yellow', 'medium', 'Il colore del sole e dei limoni.'),
            ('arancione', 'orange', 'hard', 'Il colore delle carote.'),
        ]
    },
    'food': {
        'name': {'it': 'Cibo', 'en': 'Food'},
        'items': [
            ('pane', 'bread', 'easy', 'Lo compri dal fornaio.'),
            ('latte', 'milk', 'easy', 'È bianco e lo bevi a colazione.'),
            ('mela', 'apple', 'easy', 'Un frutto rosso o verde.'),
            ('formaggio', 'cheese', 'medium', 'Il topo ne va matto.'),
            ('pomodoro', 'tomato', 'medium', 'Rosso, serve per la salsa della pizza.'),
            ('cioccolato', 'chocolate', 'hard', 'Dolce, marrone e si scioglie in bocca.'),
        ]
    },
    'people': {
        'name': {'it': 'Persone', 'en': 'People'},
        'items': [
            ('mamma', 'mom', 'easy', 'Ti ha messo al mondo.'),
            ('nonno', 'grandpa', 'easy', 'Il papà del tuo papà.'),
            ('fratello', 'brother', 'medium', 'Un figlio degli stessi genitori.'),
            ('maestra', 'teacher', 'medium', 'Insegna ai bambini a scuola.'),
        ]
    },
    'body': {
        'name': {'it': 'Corpo', 'en': 'Body'},
        'items': [
            ('mano', 'hand', 'easy', 'Ha cinque dita.'),
            ('naso', 'nose', 'easy', 'Serve per sentire gli odori.'),
            ('ginocchio', 'knee', 'hard', 'Si piega a metà della gamba.'),
        ]
    },
    'nature': {
        'name': {'it': 'Natura', 'en': 'Nature'},
        'items': [
            ('sole', 'sun', 'easy', 'Splende nel cielo di giorno.'),
            ('fiore', 'flower', 'easy', 'Profuma e piace alle api.'),
            ('albero', 'tree', 'medium', 'Ha un tronco, rami e foglie.'),
            ('montagna', 'mountain', 'medium', 'Molto alta, in cima c\'è la neve.'),
            ('arcobaleno', 'rainbow', 'hard', 'Appare dopo la pioggia con sette colori.'),
        ]
    },
    'weather': {
        'name': {'it': 'Meteo', 'en': 'Weather'},
        'items': [
            ('neve', 'snow', 'medium', "Bianca e fredda, cade d'inverno."),
            ('pioggia', 'rain', 'medium', "Gocce d'acqua che cadono dal cielo."),
            ('temporale', 'storm', 'hard', 'Tuoni, lampi e tanta pioggia.'),
        ]
    },
    'clothing': {
        'name': {'it': 'Vestiti', 'en': 'Clothing'},
        'items': [
            ('maglia', 'sweater', 'medium', 'La metti quando fa freddo.'),
            ('cappello', 'hat', 'medium', 'Lo porti sulla testa.'),
            ('pantaloni', 'trousers', 'hard', 'Coprono le gambe.'),
        ]
    },
    'transport': {
        'name': {'it': 'Trasporti', 'en': 'Transport'},
        'items': [
            ('treno', 'train', 'medium', 'Viaggia sui binari.'),
            ('bicicletta', 'bicycle', 'hard', 'Ha due ruote e si pedala.'),
            ('aereo', 'airplane', 'hard', 'Vola alto tra le nuvole.'),
        ]
    },
    'school': {
        'name': {'it': 'Scuola', 'en': 'School'},
        'items': [
            ('scuola', 'school', 'medium', 'Dove vai per imparare e vedere gli amici.'),
            ('penna', 'pen', 'medium', "Si usa per scrivere con l'inchiostro."),
            ('gomma', 'eraser', 'medium', 'Cancella gli errori di matita.'),
            ('quaderno', 'notebook', 'medium', 'Ha pagine di carta per scrivere.'),
            ('banco', 'desk', 'medium', 'Il tavolo dove ti siedi a scuola.'),
            ('lavagna', 'blackboard', 'medium', 'La maestra ci scrive col gesso.'),
            ('classe', 'classroom', 'medium', 'La stanza dove stanno gli alunni.'),
            ('righello', 'ruler', 'hard', 'Serve per fare righe dritte e misurare.'),
            ('colla', 'glue', 'hard', 'Attacca i fogli di carta.'),
            ('forbici', 'scissors', 'hard', 'Servono per tagliare la carta.'),
        ]
    },
    'objects': {
        'name': {'it': 'Oggetti', 'en': 'Objects'},
        'items': [
            ('casa', 'house', 'easy', None),
            ('letto', 'bed', 'easy', 'Ci dormi ogni notte.'),
            ('ombrello', 'umbrella', 'hard', 'Ti ripara dalla pioggia.'),
            ('orologio', 'clock', 'hard', "Segna l'ora."),
            ('tazza di tè', 'cup of tea', 'hard', 'Una bevanda calda inglese.'),
        ]
    },
}


@dataclass(frozen=True)
class LexiconEntry:
    """One word pair with its metadata."""
    source_text: str
    target_text: str
    category: str
    difficulty: str
    hint: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'source_text': self.source_text,
            'target_text': self.target_text,
            'category': self.category,
            'difficulty': self.difficulty,
            'hint': self.hint
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LexiconEntry':
        return cls(
            source_text=data['source_text'],
            target_text=data['target_text'],
            category=data['category'],
            difficulty=data['difficulty'],
            hint=data.get('hint')
        )


class Lexicon:
    """Immutable catalog of entries, indexed by tier."""

    def __init__(self, entries):
        self._entries = tuple(entries)
        for entry in self._entries:
            if entry.difficulty not in TIERS:
                raise ValueError(f"Unknown difficulty tier {entry.difficulty!r} for {entry.source_text!r}")
        self._by_tier = {
            tier: tuple(e for e in self._entries if e.difficulty == tier)
            for tier in TIERS
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LexiconEntry]:
        return iter(self._entries)

    def by_tier(self, tier: str) -> tuple[LexiconEntry, ...]:
        return self._by_tier.get(tier, ())

    def categories(self) -> list[str]:
        return sorted({e.category for e in self._entries})

    def find(self, source_text: str) -> LexiconEntry | None:
        for entry in self._entries:
            if entry.source_text == source_text:
                return entry
        return None

    @classmethod
    def from_items(cls, items: list[dict]) -> 'Lexicon':
        """Build from a list of {source_text, target_text, category, difficulty, hint} dicts."""
        return cls(LexiconEntry.from_dict(item) for item in items)


def get_seed_data() -> list[dict]:
    """Flatten the bundled corpus into entry dicts."""
    items = []
    for category, data in WORD_CORPUS.items():
        for italian, english, tier, hint in data['items']:
            items.append({
                'source_text': italian,
                'target_text': english,
                'category': category,
                'difficulty': tier,
                'hint': hint
            })
    return items


def default_lexicon() -> Lexicon:
    """The bundled Italian/English lexicon."""
    return Lexicon.from_items(get_seed_data())


def get_category_name(category: str, language: str = 'it') -> str:
    """Get display name for a category."""
    names = WORD_CORPUS.get(category, {}).get('name', {})
    return names.get(language, category)

