"""CSV export of registrations"""

import csv
import io
from datetime import date, datetime

from hackwknd.modules.hackathons.models import slugify
from .models import status_of

CSV_HEADER = ['Name', 'Email', 'Phone', 'Hackathon', 'Status', 'Registration Date']


def short_date(value):
    """M/D/YYYY for a stored timestamp; unparseable values pass through"""
    if not value:
        return ''
    if isinstance(value, (datetime, date)):
        parsed = value
    else:
        text = str(value).strip().replace('Z', '+00:00')
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = datetime.strptime(text[:19], '%Y-%m-%d %H:%M:%S')
            except ValueError:
                return text
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def registrations_to_csv(registrations):
    """CSV text for the given registrations, or None when there are none"""
    if not registrations:
        return None

    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(CSV_HEADER)
    for r in registrations:
        writer.writerow([
            r.get('name') or '',
            r.get('email') or '',
            r.get('phone') or '',
            r.get('hackathon_title') or 'N/A',
            status_of(r),
            short_date(r.get('created_at')),
        ])
    return output.getvalue()


def export_filename(today, hackathon_title=None):
    stamp = today.strftime('%Y-%m-%d')
    if hackathon_title:
        return f"registrations-{slugify(hackathon_title)}-{stamp}.csv"
    return f"registrations-{stamp}.csv"
