"""
Commute Store Module
====================

Bounded Context: Persistence contract for commute records and endpoints.

Design:
- CommuteStore (abstract): keyed mapping commute_id -> Commute, with the
  reserved key "active" for the open commute, plus the two endpoints and an
  append-only log of admitted location samples
- Shared behaviour (save-one, delete-by-id, lookup) lives on the base class;
  adapters only implement load/save of the whole mapping and endpoints
- All operations are synchronous and whole-document (no partial writes)
- Adapters raise StoreError on I/O or decoding failures

Adapters:
- InMemoryCommuteStore: serialized dicts in memory (tests, embedding)
- JSONCommuteStore: single JSON document on disk, atomic replace on write
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from commutelog_core.errors import StoreError
from commutelog_core.model import ACTIVE_KEY, Commute, Endpoint, Location

logger = logging.getLogger(__name__)


class CommuteStore(ABC):
    """
    Abstract commute store.

    Subclasses implement load_commutes/save_commutes and
    load_endpoint/save_endpoint. Returned Commute objects must be independent
    of the stored state: mutating them has no effect until saved.
    """

    @abstractmethod
    def load_commutes(self) -> Dict[str, Commute]:
        """Load every stored commute keyed by store key."""
        raise NotImplementedError

    @abstractmethod
    def save_commutes(self, commutes: Dict[str, Commute]) -> None:
        """Replace the whole commute mapping."""
        raise NotImplementedError

    @abstractmethod
    def load_endpoint(self, identifier: str) -> Optional[Endpoint]:
        """Load an endpoint, or None if not configured."""
        raise NotImplementedError

    @abstractmethod
    def save_endpoint(self, endpoint: Endpoint) -> None:
        raise NotImplementedError

    @abstractmethod
    def load_locations(self) -> List[Location]:
        """Every logged location sample, oldest first."""
        raise NotImplementedError

    @abstractmethod
    def save_location(self, location: Location) -> None:
        """Append one sample to the location log."""
        raise NotImplementedError

    def locations_for(self, commute: Commute, now: Optional[datetime] = None) -> List[Location]:
        """
        Logged samples taken during commute.

        Args:
            commute: Commute whose [start, end] interval selects the samples
            now: Upper bound while the commute is still open (default: now)
        """
        end = commute.end or now or datetime.now()
        return [loc for loc in self.load_locations() if commute.start <= loc.timestamp <= end]

    def commute(self, identifier: str) -> Optional[Commute]:
        """Lookup a single commute by store key."""
        return self.load_commutes().get(identifier)

    def active_commute(self) -> Optional[Commute]:
        return self.commute(ACTIVE_KEY)

    def save(self, commute: Commute) -> None:
        """
        Save one commute.

        Open commutes are kept under "active"; ended commutes under their
        permanent identifier.
        """
        commutes = self.load_commutes()
        commutes[commute.store_key] = commute
        self.save_commutes(commutes)

    def finalize(self, commute: Commute, keep: bool = True) -> None:
        """
        Close the open commute in a single write.

        Removes the "active" entry and, when keep is True, stores the ended
        commute under its permanent identifier.
        """
        if commute.is_active:
            raise ValueError("Cannot finalize a commute without an end time")
        commutes = self.load_commutes()
        commutes.pop(ACTIVE_KEY, None)
        if keep:
            commutes[commute.identifier] = commute
        self.save_commutes(commutes)

    def delete_identifier(self, identifier: str) -> bool:
        """
        Remove a record by store key.

        Returns:
            True if a record was removed. Nothing is written otherwise.
        """
        commutes = self.load_commutes()
        if commutes.pop(identifier, None) is None:
            return False
        self.save_commutes(commutes)
        return True

    def delete(self, commute: Commute) -> bool:
        """Remove commute by identifier (the open commute lives under "active")."""
        active = self.active_commute()
        if active is not None and active.identifier == commute.identifier:
            return self.delete_identifier(ACTIVE_KEY)
        return self.delete_identifier(commute.identifier)


class InMemoryCommuteStore(CommuteStore):
    """
    Store holding serialized records in memory.

    Records are kept as dicts so loaded Commutes never alias stored state,
    matching the behaviour of a real persistent store.
    """

    def __init__(self):
        self._commutes: Dict[str, Dict[str, Any]] = {}
        self._endpoints: Dict[str, Dict[str, Any]] = {}
        self._locations: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def load_commutes(self) -> Dict[str, Commute]:
        with self._lock:
            return {key: Commute.from_dict(data) for key, data in self._commutes.items()}

    def save_commutes(self, commutes: Dict[str, Commute]) -> None:
        with self._lock:
            self._commutes = {key: commute.to_dict() for key, commute in commutes.items()}

    def load_endpoint(self, identifier: str) -> Optional[Endpoint]:
        with self._lock:
            data = self._endpoints.get(identifier)
        return Endpoint.from_dict(data) if data is not None else None

    def save_endpoint(self, endpoint: Endpoint) -> None:
        with self._lock:
            self._endpoints[endpoint.identifier] = endpoint.to_dict()

    def load_locations(self) -> List[Location]:
        with self._lock:
            return [Location.from_dict(data) for data in self._locations]

    def save_location(self, location: Location) -> None:
        with self._lock:
            self._locations.append(location.to_dict())

    def __len__(self) -> int:
        return len(self._commutes)


class JSONCommuteStore(CommuteStore):
    """
    Store backed by a single JSON document.

    Layout:
        {
            "commutes": {"active": {...}, "home -> work 2026-10-19T09:00:00": {...}},
            "endpoints": {"home": {...}, "work": {...}},
            "locations": [{...}, ...]
        }

    Writes go to a temporary file in the same directory which then replaces
    the document, so readers never observe a partial write.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.RLock()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {'commutes': {}, 'endpoints': {}, 'locations': []}
        try:
            with open(self.path, encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read commute store {self.path}: {e}") from e

        if not isinstance(document, dict):
            raise StoreError(f"Invalid commute store {self.path}: expected a JSON object")
        document.setdefault('commutes', {})
        document.setdefault('endpoints', {})
        document.setdefault('locations', [])
        return document

    def _write(self, document: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(document, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"Failed to write commute store {self.path}: {e}") from e

    def load_commutes(self) -> Dict[str, Commute]:
        with self._lock:
            document = self._read()
        try:
            return {key: Commute.from_dict(data) for key, data in document['commutes'].items()}
        except ValueError as e:
            raise StoreError(f"Corrupt commute record in {self.path}: {e}") from e

    def save_commutes(self, commutes: Dict[str, Commute]) -> None:
        with self._lock:
            document = self._read()
            document['commutes'] = {key: commute.to_dict() for key, commute in commutes.items()}
            self._write(document)
        logger.debug(f"Saved {len(commutes)} commutes to {self.path}")

    def load_endpoint(self, identifier: str) -> Optional[Endpoint]:
        with self._lock:
            data = self._read()['endpoints'].get(identifier)
        if data is None:
            return None
        try:
            return Endpoint.from_dict(data)
        except ValueError as e:
            raise StoreError(f"Corrupt endpoint '{identifier}' in {self.path}: {e}") from e

    def save_endpoint(self, endpoint: Endpoint) -> None:
        with self._lock:
            document = self._read()
            document['endpoints'][endpoint.identifier] = endpoint.to_dict()
            self._write(document)
        logger.info(f"Saved endpoint {endpoint}")

    def load_locations(self) -> List[Location]:
        with self._lock:
            document = self._read()
        try:
            return [Location.from_dict(data) for data in document['locations']]
        except ValueError as e:
            raise StoreError(f"Corrupt location record in {self.path}: {e}") from e

    def save_location(self, location: Location) -> None:
        with self._lock:
            document = self._read()
            document['locations'].append(location.to_dict())
            self._write(document)
