# speaker.py
# Offline text-to-speech on a background worker fed by a queue.

import logging
import queue
import threading
from typing import List, Optional

import pyttsx3

logger = logging.getLogger(__name__)

PREFERRED_VOICES: List[str] = ["Samantha", "Victoria", "Ava", "Moira", "Karen", "Tessa", "Kathy"]


def init_tts(rate: int = 165, volume: float = 1.0):
    engine = pyttsx3.init()
    engine.setProperty("rate", rate)
    engine.setProperty("volume", volume)

    # Optional: pick a nicer voice when one is installed
    for v in engine.getProperty("voices") or []:
        if any(p.lower() in (v.name or "").lower() for p in PREFERRED_VOICES):
            engine.setProperty("voice", v.id)
            break

    return engine


class Speaker:
    """
    Fire-and-forget speech backed by a pyttsx3 worker thread.

    speak() only queues text; the worker owns the engine. When no
    speech driver is available every call silently does nothing.
    """

    def __init__(self, rate: int = 165, volume: float = 1.0) -> None:
        self.rate = rate
        self.volume = volume
        self._queue: "queue.Queue[Optional[str]]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._available = True

    @property
    def available(self) -> bool:
        return self._available

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._worker, name="tts", daemon=True)
        self._thread.start()

    def speak(self, text: str) -> None:
        text = (text or "").strip()
        if not text or not self._available:
            return
        self.start()
        self._queue.put(text)

    def close(self, timeout: float = 5.0) -> None:
        """Let queued speech finish, then stop the worker."""
        if self._thread is None:
            return
        self._queue.put(None)
        self._thread.join(timeout=timeout)
        self._thread = None

    def _worker(self) -> None:
        try:
            engine = init_tts(self.rate, self.volume)
        except Exception as e:
            logger.warning(f"No speech engine available, voice disabled: {e}")
            self._available = False
            engine = None

        while True:
            text = self._queue.get()
            try:
                if text is None:
                    break
                if engine is None:
                    continue
                engine.say(text)
                engine.runAndWait()
            except Exception as e:
                logger.warning(f"TTS error: {e}")
            finally:
                self._queue.task_done()
