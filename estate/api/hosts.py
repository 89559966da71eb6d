"""
Ordered base-host list with a current pointer, used for fallback between API hosts.
"""

from __future__ import annotations

import logging
from threading import Lock

logger = logging.getLogger(__name__)


class HostList:
    """
    Ordered, non-empty list of base URLs and the index of the one in use.

    The index only changes through set_current(). Each change is atomic, but two
    in-flight calls can still overwrite each other's choice; the last writer wins.
    """

    def __init__(self, hosts: list[str] | str) -> None:
        """
        Args:
            hosts: Single base URL or list of base URLs; first entry is the default
        """
        if isinstance(hosts, str):
            hosts = [hosts]
        cleaned: list[str] = []
        for host in hosts:
            host = (host or "").strip().rstrip("/")
            if host and host not in cleaned:
                cleaned.append(host)
        if not cleaned:
            raise ValueError("HostList requires at least one base URL")
        self._hosts = cleaned
        self._current_index = 0
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._hosts)

    def __iter__(self):
        return iter(list(self._hosts))

    @property
    def hosts(self) -> list[str]:
        return list(self._hosts)

    @property
    def current(self) -> str:
        with self._lock:
            return self._hosts[self._current_index]

    @property
    def current_index(self) -> int:
        with self._lock:
            return self._current_index

    def set_current(self, index: int) -> str:
        """Point at hosts[index]. The only place the current index is mutated."""
        if not 0 <= index < len(self._hosts):
            raise IndexError(f"Host index {index} out of range (0..{len(self._hosts) - 1})")
        with self._lock:
            previous = self._current_index
            self._current_index = index
            selected = self._hosts[index]
        if previous != index:
            logger.info("Switched to API URL: %s", selected)
        return selected

    def promote(self, url: str) -> str:
        """Make an already-configured host current."""
        url = url.rstrip("/")
        try:
            index = self._hosts.index(url)
        except ValueError:
            raise ValueError(f"Unknown host: {url}") from None
        return self.set_current(index)

    def switch_to_next(self) -> str | None:
        """Advance to the next host. Returns its URL, or None if already on the last one."""
        index = self.current_index
        if index < len(self._hosts) - 1:
            return self.set_current(index + 1)
        return None

    def alternates(self, excluding: str) -> list[str]:
        """Hosts in configured order, minus `excluding`."""
        excluding = excluding.rstrip("/")
        return [host for host in self._hosts if host != excluding]
