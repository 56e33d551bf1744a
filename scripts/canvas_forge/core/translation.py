"""MyMemory translation client used for prompt translation."""

from __future__ import annotations

from typing import Optional

import requests


MYMEMORY_URL = "https://api.mymemory.translated.net/get"
DEFAULT_TIMEOUT = 15.0


class MyMemoryTranslator:
    def __init__(
        self,
        *,
        source: str = "pt",
        target: str = "en",
        url: str = MYMEMORY_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.langpair = f"{source}|{target}"
        self.url = url
        self.timeout = timeout

    def translate(self, text: str) -> Optional[str]:
        response = requests.get(
            self.url,
            params={"q": text, "langpair": self.langpair},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        data = payload.get("responseData") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            return None
        translated = data.get("translatedText")
        return translated or None
