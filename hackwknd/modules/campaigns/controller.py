"""
Campaign Controller
===================

One bulk-email interaction as an explicit state machine:

    idle -> resolving -> editing -> confirming -> sending -> completed
                                                          -> completed_with_failures
    resolving -> nothing_to_send | failed
    idle / editing / confirming -> cancelled

Every operation appends a short user-facing notification; per-recipient
failure detail only goes to the log.
"""

import logging

from hackwknd.core import get_config_value
from .dispatcher import batch_count, dispatch, DEFAULT_BATCH_SIZE
from .recipients import resolve_recipients, RecipientResolutionError
from .renderer import get_preset, render_for_recipient, build_envelope
from .transport import build_request

logger = logging.getLogger(__name__)

IDLE = 'idle'
RESOLVING = 'resolving'
EDITING = 'editing'
CONFIRMING = 'confirming'
SENDING = 'sending'
COMPLETED = 'completed'
COMPLETED_WITH_FAILURES = 'completed_with_failures'
CANCELLED = 'cancelled'
NOTHING_TO_SEND = 'nothing_to_send'
FAILED = 'failed'

TERMINAL_STATES = (COMPLETED, COMPLETED_WITH_FAILURES, CANCELLED, NOTHING_TO_SEND, FAILED)
CANCELLABLE_STATES = (IDLE, EDITING, CONFIRMING)


class CampaignStateError(Exception):
    """Operation not allowed in the current state"""


class CampaignValidationError(Exception):
    """Campaign content is incomplete"""


class CampaignController:
    def __init__(self, hackathon, status_filter='all', resolver=resolve_recipients, batch_size=None):
        self.hackathon = hackathon
        self.status_filter = status_filter
        self.resolver = resolver
        self.batch_size = batch_size or int(get_config_value('CAMPAIGN_BATCH_SIZE', DEFAULT_BATCH_SIZE))
        self.state = IDLE
        self.recipients = []
        self.preset = 'custom'
        self.subject = ''
        self.body = ''
        self.preview_mode = False
        self.notifications = []
        self.report = None

    @property
    def title(self):
        return self.hackathon.get('title') or ''

    def notify(self, level, message):
        self.notifications.append({'level': level, 'message': message})

    def _require(self, *states):
        if self.state not in states:
            raise CampaignStateError(
                f"Cannot do that while the campaign is {self.state} (needs {' or '.join(states)})"
            )

    # ===================
    # TRANSITIONS
    # ===================

    def resolve(self):
        """Load the recipients for the selected event and status filter"""
        self._require(IDLE)
        self.state = RESOLVING
        try:
            self.recipients = self.resolver(self.hackathon['id'], self.status_filter)
        except RecipientResolutionError as e:
            logger.error(f"Recipient resolution failed for hackathon {self.hackathon.get('id')}: {e}")
            self.state = FAILED
            self.notify('error', 'Could not load recipients, nothing was sent')
            raise

        if not self.recipients:
            self.state = NOTHING_TO_SEND
            self.notify('warning', 'No registrations match this filter, nothing to send')
            return self.recipients

        self.state = EDITING
        self.apply_preset('custom')
        self.notify('info', f"{len(self.recipients)} recipients selected")
        return self.recipients

    def apply_preset(self, key):
        """Replace subject and body with a preset; unknown keys raise KeyError"""
        self._require(EDITING)
        preset = get_preset(key, self.title)
        self.preset = key
        self.subject = preset['subject']
        self.body = preset['body']

    def edit(self, subject=None, body=None):
        self._require(EDITING)
        if subject is not None:
            self.subject = subject
        if body is not None:
            self.body = body

    def toggle_preview(self):
        self._require(EDITING, CONFIRMING)
        self.preview_mode = not self.preview_mode
        return self.preview_mode

    def preview(self, recipient=None):
        """Rendered subject and HTML for one recipient (first one by default)"""
        self._require(EDITING, CONFIRMING)
        recipient = recipient or self.recipients[0]
        rendered = render_for_recipient({'subject': self.subject, 'body': self.body}, recipient)
        return {
            'to': recipient['email'],
            'subject': rendered['subject'],
            'html': build_envelope(
                rendered['subject'], rendered['body'], recipient.get('partnership_logos'),
                hackathon_title=self.title,
            ),
        }

    def confirm(self):
        """Lock the content in; subject and body must both be present"""
        self._require(EDITING)
        if not (self.subject or '').strip() or not (self.body or '').strip():
            self.notify('warning', 'Please provide both subject and content for your email')
            raise CampaignValidationError('Subject and body are required')
        self.state = CONFIRMING
        self.notify('info', f"Ready to send to {len(self.recipients)} recipients")

    def build_requests(self):
        template = {'subject': self.subject, 'body': self.body}
        return [
            build_request(recipient, render_for_recipient(template, recipient), self.title)
            for recipient in self.recipients
        ]

    def send(self, transport):
        """Dispatch every message; ``transport`` has a send(request) method or is the send callable"""
        self._require(CONFIRMING)
        send = transport.send if hasattr(transport, 'send') else transport
        self.state = SENDING

        requests = self.build_requests()
        batches = batch_count(len(requests), self.batch_size)

        def progress(job, outcome):
            self.notify('info', f"Batch {job.index + 1}/{batches}: {outcome.succeeded} sent, {outcome.failed} failed")

        self.report = dispatch(requests, send, batch_size=self.batch_size, on_batch=progress)
        for failure in self.report.failures:
            logger.error(f"Campaign email to {failure['to']} (registration {failure['id']}) failed: {failure['error']}")

        if self.report.failed:
            self.state = COMPLETED_WITH_FAILURES
            if self.report.sent:
                self.notify('success', f"Successfully sent {self.report.sent} emails")
            self.notify('warning', f"{self.report.failed} emails failed to send")
        else:
            self.state = COMPLETED
            self.notify('success', f"Successfully sent {self.report.sent} emails")
        return self.report

    def cancel(self):
        if self.state not in CANCELLABLE_STATES:
            raise CampaignStateError(f"Cannot cancel while the campaign is {self.state}")
        self.state = CANCELLED
        self.notify('info', 'Email campaign cancelled')

    def to_dict(self):
        return {
            'state': self.state,
            'hackathon_id': self.hackathon.get('id'),
            'status_filter': self.status_filter,
            'recipient_count': len(self.recipients),
            'preset': self.preset,
            'subject': self.subject,
            'body': self.body,
            'preview_mode': self.preview_mode,
            'notifications': list(self.notifications),
            'report': self.report.to_dict() if self.report else None,
        }
