import json
import logging
import math
import os
import re
import tempfile

from roundtimer import round_clock
from roundtimer.client.snapshot import ACTIVE, ClientTimerView

logger = logging.getLogger(__name__)


class RecoveryStore:
    """Ephemeral per-event, per-client copy of the last polled timer view.

    Lets a freshly started client show a plausible countdown before its
    first poll returns. Advisory only; the first poll always wins.
    """

    def __init__(self, directory: str | None = None, client_id: str = "default"):
        self.directory = directory or os.path.join(tempfile.gettempdir(), "roundtimer")
        self.client_id = re.sub(r"[^A-Za-z0-9_.-]", "_", client_id)

    def path_for(self, event_id: int) -> str:
        return os.path.join(self.directory, f"timer_{event_id}_{self.client_id}.json")

    def save(self, view: ClientTimerView, now=None):
        now = now or round_clock.utc_now()
        data = view.to_dict()
        data["saved_at"] = round_clock.format_timestamp(now)
        path = self.path_for(view.event_id)
        try:
            os.makedirs(self.directory, exist_ok=True)
            tmp_path = f"{path}.tmp"
            with open(tmp_path, "w") as f:
                json.dump(data, f)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.warning(f"Could not save timer recovery state to {path}: {e}")

    def load(self, event_id: int, now=None) -> ClientTimerView | None:
        """The stored view, with an active countdown aged by the time since saving."""
        now = now or round_clock.utc_now()
        path = self.path_for(event_id)
        try:
            with open(path) as f:
                data = json.load(f)
            view = ClientTimerView.from_dict(data)
            saved_at = round_clock.parse_timestamp(data.get("saved_at"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable timer recovery state {path}: {e}")
            return None

        if view.event_id != event_id:
            return None
        if view.status == ACTIVE and saved_at is not None:
            elapsed = max(0, math.floor((round_clock.ensure_utc(now) - saved_at).total_seconds()))
            view = view.evolve(seconds_remaining=max(0, view.seconds_remaining - elapsed))
        return view

    def clear(self, event_id: int):
        try:
            os.remove(self.path_for(event_id))
        except FileNotFoundError:
            pass
