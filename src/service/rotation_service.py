import datetime
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from logger import Logger
from util import Util


@dataclass(frozen=True)
class RotationState:
    last_changed: datetime.datetime
    index: int


class RotationService:
    """
    Walks a directory of photos in a fixed shuffled order, one per day.

    The order comes from a permutation file (comma separated indices into the
    sorted file list); the position is kept in a two-line state file holding the
    POSIX timestamp of the last change and the next index.
    """

    def __init__(self, images_dir: str, permutation_path: Optional[str], state_path: str) -> None:
        self._logger: logging.Logger = Logger().get_logger()
        self._images_dir = images_dir
        self._permutation_path = permutation_path
        self._state_path = state_path

    @property
    def images_dir(self) -> str:
        return self._images_dir

    def list_images(self) -> List[str]:
        names = [
            name
            for name in os.listdir(self._images_dir)
            if Util.is_image_file(name) and os.path.isfile(os.path.join(self._images_dir, name))
        ]
        names.sort()
        return names

    def load_permutation(self, count: int) -> List[int]:
        if not self._permutation_path or not os.path.exists(self._permutation_path):
            return list(range(count))

        with open(self._permutation_path, "r", encoding="utf-8") as f:
            raw = f.read()

        order: List[int] = []
        for token in raw.split(","):
            token = token.strip()
            if not token:
                continue
            try:
                idx = int(token)
            except ValueError:
                self._logger.warning(f"Ignoring non-numeric permutation entry '{token}'")
                continue
            if 0 <= idx < count:
                order.append(idx)

        if not order:
            self._logger.warning(
                f"Permutation file {self._permutation_path} has no usable entries; using sorted order"
            )
            return list(range(count))
        return order

    def load_state(self) -> Optional[RotationState]:
        if not os.path.exists(self._state_path):
            return None
        with open(self._state_path, "r", encoding="utf-8") as f:
            raw = f.read()
        try:
            timestamp, index = raw.strip().split("\n", 1)
            return RotationState(
                last_changed=datetime.datetime.fromtimestamp(int(timestamp.strip())),
                index=int(index.strip()),
            )
        except ValueError as e:
            self._logger.warning(f"Ignoring unreadable rotation state in {self._state_path}: {e}")
            return None

    def save_state(self, index: int, now: Optional[datetime.datetime] = None) -> RotationState:
        now = now or datetime.datetime.now()
        state = RotationState(last_changed=now.replace(microsecond=0), index=index)
        temp = f"{self._state_path}.tmp"
        with open(temp, "w", encoding="utf-8") as f:
            f.write(f"{int(now.timestamp())}\n{index}")
        os.replace(temp, self._state_path)
        return state

    def current_image(self) -> str:
        """File name (relative to ``images_dir``) of the photo due now."""
        names = self.list_images()
        if not names:
            raise FileNotFoundError(f"No images found in {self._images_dir}")
        order = self.load_permutation(len(names))
        state = self.load_state()
        index = state.index if state else 0
        return names[order[index % len(order)]]

    def advance(self, now: Optional[datetime.datetime] = None) -> RotationState:
        names = self.list_images()
        order_len = len(self.load_permutation(len(names))) or 1
        state = self.load_state()
        index = state.index if state else 0
        new_state = self.save_state((index + 1) % order_len, now)
        self._logger.info(f"Rotation advanced to index {new_state.index}")
        return new_state

    @staticmethod
    def changed_today(state: Optional[RotationState], now: Optional[datetime.datetime] = None) -> bool:
        if state is None:
            return False
        now = now or datetime.datetime.now()
        return state.last_changed.date() == now.date()
