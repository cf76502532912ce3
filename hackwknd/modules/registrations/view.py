"""
Admin registration view state.

Pure transformations over a list of registration dicts. The admin list,
the filter badges and "confirm all pending" are all derived from one
RegistrationView, and a successful status change is mirrored into a new
view instead of refetching the list.
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .models import STATUSES, STATUS_FILTERS, DEFAULT_STATUS, status_of

SEARCH_FIELDS = ('name', 'email', 'phone', 'hackathon_title')


@dataclass(frozen=True)
class RegistrationView:
    registrations: Tuple[dict, ...] = ()
    hackathon_id: Optional[int] = None
    status_filter: str = 'all'
    search: str = ''

    def __post_init__(self):
        if self.status_filter not in STATUS_FILTERS:
            raise ValueError(f"Unknown status filter: {self.status_filter}")
        # Accept any iterable but store an immutable copy
        object.__setattr__(self, 'registrations', tuple(self.registrations))

    def _in_event(self, registration):
        return self.hackathon_id is None or registration.get('hackathon_id') == self.hackathon_id

    def _matches_search(self, registration):
        term = (self.search or '').strip().lower()
        if not term:
            return True
        return any(term in str(registration.get(field) or '').lower() for field in SEARCH_FIELDS)

    def visible(self):
        """Registrations passing the event, status and search filters"""
        return [
            r for r in self.registrations
            if self._in_event(r)
            and (self.status_filter == 'all' or status_of(r) == self.status_filter)
            and self._matches_search(r)
        ]

    def counts(self):
        """Badge counts for the selected event (search and status filter ignored)"""
        counts = {'all': 0, **{status: 0 for status in STATUSES}}
        for r in self.registrations:
            if not self._in_event(r):
                continue
            counts['all'] += 1
            status = status_of(r)
            if status in counts:
                counts[status] += 1
        return counts

    def with_status(self, ids, status):
        """New view where exactly the given registrations carry ``status``"""
        if status not in STATUSES:
            raise ValueError(f"Invalid status: {status}")
        targets = set(ids)
        updated = tuple(
            {**r, 'status': status} if r.get('id') in targets else r
            for r in self.registrations
        )
        return replace(self, registrations=updated)

    def pending_ids(self, hackathon_id):
        """Ids of pending (or never-set) registrations of one event"""
        return [
            r['id'] for r in self.registrations
            if r.get('hackathon_id') == hackathon_id and status_of(r) == DEFAULT_STATUS
        ]

    def filtered(self, hackathon_id=None, status_filter=None, search=None):
        """Same registrations with different filters"""
        return replace(
            self,
            hackathon_id=self.hackathon_id if hackathon_id is None else hackathon_id,
            status_filter=self.status_filter if status_filter is None else status_filter,
            search=self.search if search is None else search,
        )

    def to_dict(self):
        return {
            'registrations': self.visible(),
            'counts': self.counts(),
            'hackathon_id': self.hackathon_id,
            'status_filter': self.status_filter,
            'search': self.search,
        }
