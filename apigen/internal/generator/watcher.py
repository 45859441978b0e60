import logging
import os
import threading
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5


class FileWatcher:
    """
    Опрос одного файла по времени изменения и размеру.

    Цикл однопоточный: пока обработчик работает, новые изменения
    не теряются, а склеиваются в одно событие на следующем опросе.
    """

    def __init__(self, path: str, interval: float = DEFAULT_POLL_INTERVAL):
        self.path = path
        self.interval = interval
        self._last = self._snapshot()

    def _snapshot(self) -> Optional[Tuple[int, int]]:
        try:
            stat = os.stat(self.path)
        except OSError:
            return None
        return stat.st_mtime_ns, stat.st_size

    def changed(self) -> bool:
        """Изменился ли файл с прошлой проверки (удаление событием не считается)"""
        current = self._snapshot()
        if current == self._last:
            return False
        self._last = current
        if current is None:
            logger.warning(f"Watched file is missing: {self.path}")
            return False
        return True

    def run(
        self,
        on_change: Callable[[], None],
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        """Цикл опроса до установки stop_event"""
        stop_event = stop_event or threading.Event()
        while not stop_event.is_set():
            if self.changed():
                on_change()
            stop_event.wait(self.interval)
