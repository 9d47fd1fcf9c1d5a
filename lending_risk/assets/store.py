"""Asset state store: decoded per-asset config and accrual data."""
from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator

from ..config import AppConfig
from ..errors import DecodeError
from ..interfaces.codec import CellDictionary, CellSlice
from ..models import AccrualProjection, AssetConfig, AssetData
from .accrual import InterestAccrualModel
from .parser import lookup_entry, parse_asset_config, parse_asset_data

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one writer.

    New readers queue behind a waiting writer.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class AssetStateStore:
    """Caches decoded asset config and data for a fixed set of assets.

    Both maps are only ever replaced wholesale, so a reader never observes
    config from one snapshot mixed with another.
    """

    def __init__(
        self,
        assets: Iterable[int],
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._keys: dict[str, int] = {str(a): int(a) for a in assets}
        self._clock = clock
        self._lock = ReadWriteLock()
        self._config: dict[str, AssetConfig] = {}
        self._data: dict[str, AssetData] = {}

    @classmethod
    def from_config(
        cls, config: AppConfig, clock: Callable[[], float] = time.time
    ) -> AssetStateStore:
        return cls(config.asset_ids.values(), clock=clock)

    def assets(self) -> dict[str, int]:
        return dict(self._keys)

    def config(self, asset: str) -> AssetConfig | None:
        with self._lock.read():
            return self._config.get(asset)

    def data(self, asset: str) -> AssetData | None:
        with self._lock.read():
            return self._data.get(asset)

    def decode(
        self,
        data: CellDictionary | None = None,
        config: CellDictionary | None = None,
    ) -> None:
        """Replace the data and/or config maps from chain snapshots.

        Raises:
            DecodeError: an asset is missing or a field is malformed. The
                previously stored maps are kept.
        """
        new_data = (
            self._decode_map(data, parse_asset_data, "data")
            if data is not None
            else None
        )
        new_config = (
            self._decode_map(config, parse_asset_config, "config")
            if config is not None
            else None
        )

        with self._lock.write():
            if new_data is not None:
                self._data = new_data
            if new_config is not None:
                self._config = new_config

        logger.debug(
            "Decoded %d assets (data=%s, config=%s)",
            len(self._keys), new_data is not None, new_config is not None,
        )

    def _decode_map(
        self,
        dictionary: CellDictionary,
        parse: Callable[[CellSlice], Any],
        kind: str,
    ) -> dict[str, Any]:
        decoded: dict[str, Any] = {}
        for key, asset_id in self._keys.items():
            try:
                entry = lookup_entry(dictionary, asset_id)
            except KeyError as e:
                raise DecodeError(f"asset {key} missing from {kind} snapshot") from e
            try:
                decoded[key] = parse(entry)
            except Exception as e:
                raise DecodeError(f"failed to decode {kind} of asset {key}: {e}") from e
        return decoded

    def project_forward(self, asset: str, target_timestamp: int) -> AccrualProjection:
        """Accrue ``asset`` up to ``target_timestamp`` without touching the store."""
        with self._lock.read():
            data = self._data.get(asset)
            config = self._config.get(asset)
        if data is None or config is None:
            raise KeyError(f"asset {asset} has not been decoded")
        return InterestAccrualModel(config).project(data, target_timestamp)

    def current_rates(self, asset: str) -> AccrualProjection:
        return self.project_forward(asset, int(self._clock()))

    def update_current_rates(self, forward: int = 0) -> AssetStateStore:
        """Return a new store with every asset accrued to now + ``forward`` seconds.

        The config map is shared with this store.
        """
        ts = int(self._clock()) + forward
        with self._lock.read():
            data = self._data
            config = self._config

        projected = {
            asset: InterestAccrualModel(config[asset]).project(data[asset], ts).data
            for asset in self._keys
        }

        store = AssetStateStore(self._keys.values(), clock=self._clock)
        store._config = config
        store._data = projected
        return store
