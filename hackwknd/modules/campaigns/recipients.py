"""Recipient resolution for campaign emails"""

import logging

from hackwknd.modules.hackathons.models import HackathonStoreError, fetch_hackathon
from hackwknd.modules.registrations.models import (
    RegistrationStoreError, list_registrations, status_clause
)

logger = logging.getLogger(__name__)


class RecipientResolutionError(Exception):
    """Recipients could not be determined; nothing should be sent"""


def resolve_recipients(hackathon_id, status_filter='all'):
    """Registrations of one event matching a status filter, as send targets.

    Each recipient is {id, name, email, hackathon_id, partnership_logos};
    the registration id doubles as the correlation id of its send. Unknown
    filters raise ValueError. Either the full list is returned or
    RecipientResolutionError is raised.
    """
    status_clause(status_filter)

    try:
        hackathon = fetch_hackathon(hackathon_id)
    except HackathonStoreError as e:
        raise RecipientResolutionError(f"Could not load hackathon {hackathon_id}: {e}") from e
    if not hackathon:
        raise RecipientResolutionError(f"Hackathon {hackathon_id} not found")

    try:
        registrations = list_registrations(hackathon_id=hackathon_id, status_filter=status_filter)
    except RegistrationStoreError as e:
        raise RecipientResolutionError(f"Could not load registrations: {e}") from e

    logos = hackathon.get('partnership_logos') or []
    recipients = [
        {
            'id': r['id'],
            'name': r['name'],
            'email': r['email'],
            'hackathon_id': r['hackathon_id'],
            'partnership_logos': logos,
        }
        for r in registrations
    ]
    logger.info(f"Resolved {len(recipients)} recipients for hackathon {hackathon_id} ({status_filter})")
    return recipients
