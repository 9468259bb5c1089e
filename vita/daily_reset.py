from datetime import date
from typing import Callable

from .logger import get_logger

logger = get_logger("daily_reset")


class DailyResetTrigger:
    """Detecta el cambio de fecha local en la primera petición del día.

    No hay temporizador: el reset puede llegar tarde respecto a medianoche
    hasta que entra la siguiente petición.
    """

    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today
        self.last_reset_date: date = today()

    def check(self) -> bool:
        current = self._today()
        if current != self.last_reset_date:
            logger.info("Date changed from %s to %s", self.last_reset_date, current)
            self.last_reset_date = current
            return True
        return False

    def mark_reset(self) -> None:
        self.last_reset_date = self._today()
