#!/usr/bin/env python3
"""Fill the persistent audio cache with remote speech for every lexicon word.

Stops early once the remote quota is exhausted; words already cached are
skipped without a remote call.
"""

import argparse
import asyncio
import logging
import os

from core.config import PRIMARY_LANGUAGE, TIERS
from core.interfaces import LocalSpeechEngine
from core.lexicon import default_lexicon
from core.speech import SpeechDelivery, SpeechCache

logger = logging.getLogger(__name__)


class SilentEngine(LocalSpeechEngine):
    """Warming never plays anything."""

    def speak(self, text: str, language: str) -> None:
        pass

    def stop(self) -> None:
        pass


def build_storage(storage_type: str):
    if storage_type == 'postgres':
        from server.postgres_storage import PostgresStorage
        return PostgresStorage()
    from server.file_storage import FileStorage
    return FileStorage()


async def warm(delivery: SpeechDelivery, words: list[str]) -> int:
    """Preload each word in turn. Returns how many are now cached."""
    for index, word in enumerate(words, 1):
        if delivery.breaker.is_open:
            logger.warning(f"Quota exhausted after {index - 1} of {len(words)} words")
            break
        await delivery.preload(word, PRIMARY_LANGUAGE)
        print(f"[{index}/{len(words)}] {word}")
    return len(delivery.cache)


def main():
    parser = argparse.ArgumentParser(description='Warm the parola audio cache')
    parser.add_argument(
        '--storage',
        default=os.environ.get('PAROLA_STORAGE', 'file'),
        choices=['file', 'postgres'],
        help='Storage backend (default: $PAROLA_STORAGE or file)'
    )
    parser.add_argument(
        '--tier',
        choices=list(TIERS),
        help='Only warm words of this difficulty'
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    storage = build_storage(args.storage)
    api_key = os.environ.get('GEMINI_API_KEY')
    if not api_key:
        try:
            api_key = storage.load_config().get('gemini_api_key')
        except FileNotFoundError:
            pass
    if not api_key:
        raise SystemExit("GEMINI_API_KEY not set and no config file found")

    from server.gemini_provider import GeminiSpeechProvider
    delivery = SpeechDelivery(
        local_engine=SilentEngine(),
        provider=GeminiSpeechProvider(api_key),
        cache=SpeechCache(storage)
    )

    lexicon = default_lexicon()
    entries = lexicon.by_tier(args.tier) if args.tier else list(lexicon)
    words = [entry.source_text for entry in entries]
    cached = asyncio.run(warm(delivery, words))
    print(f"Cached {cached}/{len(words)} words ({delivery.remote_calls} remote calls)")


if __name__ == '__main__':
    main()
