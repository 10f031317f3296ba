"""
Static address-resolution bootstrap.

Fills one resolution cache with every non-loopback address in the topology
before traffic starts, then hands the same cache to every interface. With
all entries marked alive for longer than any run, no resolution request is
ever sent, so loss and delay seen during measurement come from the data
plane only.
"""

import typing as tp
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from loguru import logger

from wlanqos.simulation.errors import ConfigurationError
from wlanqos.simulation.network import Interface, Node, is_loopback_address

# One year, far beyond any simulated run
ALIVE_TIMEOUT_S = 3600 * 24 * 365


class EntryState(Enum):
    """Resolution state of a cache entry."""

    ALIVE = "alive"


@dataclass(frozen=True)
class CacheEntry:
    address: str
    link_address: str
    state: EntryState = EntryState.ALIVE
    alive_timeout_s: float = ALIVE_TIMEOUT_S


class ResolutionCache:
    """
    Mapping from network-layer address to link-layer address.

    Writable until :meth:`freeze` is called, read-only afterwards.
    """

    def __init__(self, alive_timeout_s: float = ALIVE_TIMEOUT_S):
        self.alive_timeout_s = alive_timeout_s
        self._entries: tp.Dict[str, CacheEntry] = {}
        self._frozen = False

    def add(self, address: str, link_address: str) -> CacheEntry:
        """
        Insert a permanently alive entry.

        Raises:
            RuntimeError: If the cache has been frozen
            ConfigurationError: If the address is already bound elsewhere
        """
        if self._frozen:
            raise RuntimeError("Resolution cache is read-only once attached")

        existing = self._entries.get(address)
        if existing is not None and existing.link_address != link_address:
            raise ConfigurationError(
                f"Address {address} is bound to both {existing.link_address} "
                f"and {link_address}"
            )

        entry = CacheEntry(
            address=address,
            link_address=link_address,
            state=EntryState.ALIVE,
            alive_timeout_s=self.alive_timeout_s,
        )
        self._entries[address] = entry
        return entry

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def entries(self) -> tp.Mapping[str, CacheEntry]:
        return MappingProxyType(self._entries)

    def lookup(self, address: str) -> tp.Optional[str]:
        """Return the link-layer address for `address`, if known."""
        entry = self._entries.get(address)
        return entry.link_address if entry is not None else None

    def __contains__(self, address: object) -> bool:
        return address in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ResolutionCache(entries={len(self._entries)}, frozen={self._frozen})"


def _interfaces(node: Node) -> tp.List[Interface]:
    if node.ip_stack is None:
        raise ConfigurationError(
            f"Node {node.name} (id {node.node_id}) has no IP stack installed"
        )
    return node.ip_stack.interfaces


def build_resolution_cache(
    nodes: tp.Iterable[Node],
    alive_timeout_s: float = ALIVE_TIMEOUT_S,
) -> ResolutionCache:
    """
    First pass: resolve every non-loopback address in the topology.

    Args:
        nodes: All simulated nodes
        alive_timeout_s: Lifetime of each entry

    Returns:
        The populated, frozen cache

    Raises:
        ConfigurationError: If a node has no IP stack
    """
    cache = ResolutionCache(alive_timeout_s=alive_timeout_s)

    for node in nodes:
        for iface in _interfaces(node):
            for address in iface.addresses:
                if is_loopback_address(address):
                    continue
                cache.add(address, iface.link_address)
                logger.debug(f"ARP {address} -> {iface.link_address} ({node.name})")

    cache.freeze()
    return cache


def attach_resolution_cache(
    nodes: tp.Iterable[Node],
    cache: ResolutionCache,
) -> int:
    """
    Second pass: make `cache` the active cache of every interface.

    Args:
        nodes: All simulated nodes, in the same order as the first pass
        cache: Cache produced by :func:`build_resolution_cache`

    Returns:
        Number of interfaces updated

    Raises:
        ConfigurationError: If a node has no IP stack
    """
    count = 0
    for node in nodes:
        for iface in _interfaces(node):
            iface.resolution_cache = cache
            count += 1
    return count


def populate_arp_cache(nodes: tp.Iterable[Node]) -> ResolutionCache:
    """
    Fill the shared resolution cache prior to the simulation run.

    Args:
        nodes: All simulated nodes

    Returns:
        The cache now shared by every interface
    """
    nodes = list(nodes)
    cache = build_resolution_cache(nodes)
    attached = attach_resolution_cache(nodes, cache)
    logger.info(
        f"Populated ARP cache with {len(cache)} entries, "
        f"attached to {attached} interfaces on {len(nodes)} nodes"
    )
    return cache
