"""REST API client for the parola server."""

import requests


class ParolaAPIClient:
    """Client for communicating with the parola REST API."""

    def __init__(self, base_url: str = "http://localhost:8000"):
        self.base_url = base_url.rstrip('/')
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        response = self.session.get(f"{self.base_url}{endpoint}", params=params)
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict = None) -> dict:
        """Make a POST request."""
        response = self.session.post(f"{self.base_url}{endpoint}", json=data or {})
        response.raise_for_status()
        return response.json()

    def _put(self, endpoint: str, data: dict) -> dict:
        response = self.session.put(f"{self.base_url}{endpoint}", json=data)
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        return self._get("/")

    def get_status(self) -> dict:
        """Get the current round, progress and settings."""
        return self._get("/api/status")

    def start_round(self) -> dict:
        """Start the next round."""
        return self._post("/api/round")

    def guess(self, letter: str) -> dict:
        """Guess a single letter."""
        return self._post("/api/guess", {'letter': letter})

    def hint(self) -> dict:
        """Use the next hint."""
        return self._post("/api/hint")

    def reset(self) -> dict:
        """Wipe all progress."""
        return self._post("/api/reset")

    def get_settings(self) -> dict:
        return self._get("/api/settings")

    def update_settings(self, **changes) -> dict:
        """Update one or more settings."""
        return self._put("/api/settings", changes)

    def speak(self, text: str, language: str) -> dict:
        return self._post("/api/speak", {'text': text, 'language': language})
