"""Console UI for the parola word game."""

from core.config import UI_LANGUAGES, MAX_HINTS
from core.lexicon import get_category_name
from core.utils import fold_letter
from cli.api_client import ParolaAPIClient

STAR = '*'


class ConsoleUI:
    """Console user interface for the parola word game."""

    def __init__(self, client: ParolaAPIClient):
        self.client = client
        self.language = 'it'

    def print_round(self, status: dict):
        """Print the masked word and the round counters."""
        round = status['round']
        if round['status'] == 'idle':
            print('\nNo active round. Type "next" to start one.')
            return
        category = get_category_name(round['category'], self.language) if round['category'] else ''
        print('\n' + '=' * 40)
        print(f"  {' '.join(round['masked_word'])}")
        print('=' * 40)
        print(f"Category: {category} | Level: {round['difficulty']}")
        print(f"Attempts left: {round['remaining_attempts']}/{round['max_attempts']} | "
              f"Hints: {round['hints_used']}/{MAX_HINTS}")
        if round['revealed']:
            print(f"Letters: {', '.join(round['revealed'])}")
        if round['feedback']:
            print(f"\n{round['feedback']}")

    def print_result(self, result: dict):
        """Print the end of a round."""
        round = result['round']
        if round['status'] == 'won':
            stars = result.get('stars') or 0
            print(f"\n*** {round['word'].upper()} = {round['translation']}  {STAR * stars} ***")
        elif round['status'] == 'lost':
            print(f"\nThe word was: {round['word']} ({round['translation']})")
        print(f"Progress: {result['progress_display']} | Streak: {result['progress']['streak']}")

    def print_status(self, status: dict):
        """Print detailed status."""
        progress = status['progress']
        print('\n' + '=' * 50)
        print('STATUS SUMMARY')
        print('=' * 50)
        print(f"\nLevel: {progress['difficulty']} ({status['progress_display']})")
        print(f"Words played: {progress['total_completed']}")
        print(f"Words guessed: {progress['total_successes']}")
        print(f"Stars: {progress['total_stars']}")
        print(f"Streak: {progress['streak']}")
        settings = status['settings']
        print(f"\nLanguage: {settings['language']} | Sound effects: {'on' if settings['sfx_enabled'] else 'off'}")
        print('\n' + '=' * 50 + '\n')

    def print_settings(self, settings: dict):
        print(f"Language: {settings['language']} | Sound effects: {'on' if settings['sfx_enabled'] else 'off'}")

    def print_ignored(self, letter: str, round: dict):
        """Explain why a guess changed nothing."""
        if round['status'] != 'active':
            print('This round is over. Type "next" for another word.')
        elif fold_letter(letter) in round['revealed']:
            print(f'"{letter}" was already guessed.')
        else:
            print(f'"{letter}" is not a playable letter here.')

    def handle(self, command: str) -> bool:
        """Run one command. Returns False when the user wants to quit."""
        lowered = command.lower()

        if lowered == 'exit':
            print('Ciao!')
            return False

        if lowered == 'next':
            status = self.client.start_round()
            self.print_round(status)

        elif lowered == 'hint':
            result = self.client.hint()
            self.print_round(result)
            if result['outcome'] == 'ignored':
                print('No more hints for this word.')

        elif lowered == 'status':
            self.print_status(self.client.get_status())

        elif lowered == 'reset':
            confirm = input('Erase all progress? [y/N] ').strip().lower()
            if confirm == 'y':
                self.client.reset()
                print('Progress erased.')

        elif lowered.startswith('lang'):
            parts = lowered.split()
            if len(parts) != 2 or parts[1] not in UI_LANGUAGES:
                print(f"Usage: lang {'|'.join(UI_LANGUAGES)}")
            else:
                settings = self.client.update_settings(language=parts[1])
                self.language = settings['language']
                print(f"Language set to {self.language}")

        elif lowered == 'settings':
            self.print_settings(self.client.get_settings())

        elif lowered == 'say' or lowered.startswith('say '):
            text = command[3:].strip()
            if not text:
                round = self.client.get_status()['round']
                text = round['word']
            if not text:
                print('Usage: say <italian text> (or "say" after a round to hear the word again)')
            else:
                self.client.speak(text, 'it')

        elif len(command) == 1:
            result = self.client.guess(command)
            if result['outcome'] == 'ignored':
                self.print_ignored(command, result['round'])
            self.print_round(result)
            if result['outcome'] in ('won', 'lost'):
                self.print_result(result)
                print('Type "next" for another word.')

        elif command == '':
            self.print_round(self.client.get_status())

        else:
            print('Type a single letter, or: hint, status, settings, say, next, reset, lang it|en, exit')
        return True

    def run(self):
        """Run the main application loop."""
        # Check server connection
        try:
            health = self.client.health_check()
            print(f"Connected to parola server ({health['service']})")
        except Exception as e:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print(f"Make sure the server is running: python run_server.py")
            return

        status = self.client.get_status()
        self.language = status['settings']['language']
        print(f"Restored: {status['progress']['total_completed']} played, {status['progress_display']}")
        print('Guess the Italian word one letter at a time.')
        print('Commands: "hint", "status", "settings", "say", "next", "reset", "lang it|en", "exit"\n')

        if status['round']['status'] in ('idle', 'won', 'lost'):
            status = self.client.start_round()
        self.print_round(status)

        while True:
            command = input('==> ').strip()
            try:
                if not self.handle(command):
                    return
            except Exception as e:
                print(f"Error talking to server: {e}")
