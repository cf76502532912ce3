"""
Campaign Renderer
=================

Preset subject/body pairs, per-recipient {{name}} / {{email}} substitution
and the fixed HTML envelope every campaign email is wrapped in. Branding
comes from app config (EMAIL_HEADER_IMAGE, EMAIL_TEAM_NAME, ...).
"""

import logging
from flask import current_app

from hackwknd.core import Config

logger = logging.getLogger(__name__)

DEFAULT_STYLE = {
    'bg': '#1F2937',
    'heading': '#FFFFFF',
    'text': '#E5E7EB',
    'rule': '#4B5563',
    'font': 'sans-serif',
}

# Sign-off is only appended when the body has none of these
SIGN_OFF_MARKERS = ('Best regards', 'Thank you')

TOKENS = ('name', 'email')

PRESET_ORDER = ('custom', 'confirmation', 'reminder', 'update')


def _get_style():
    """Get email style from app config or defaults"""
    style = dict(DEFAULT_STYLE)
    try:
        style.update(current_app.config.get('EMAIL_STYLE', {}))
    except RuntimeError:
        pass
    return style


def _get_brand():
    """Get brand info from app config"""
    keys = ('EMAIL_BRAND_NAME', 'EMAIL_TEAM_NAME', 'EMAIL_HEADER_IMAGE')
    try:
        values = {key: current_app.config.get(key) or getattr(Config, key) for key in keys}
    except RuntimeError:
        values = {key: getattr(Config, key) for key in keys}
    return {
        'name': values['EMAIL_BRAND_NAME'],
        'team': values['EMAIL_TEAM_NAME'],
        'header_image': values['EMAIL_HEADER_IMAGE'],
    }


# ===================
# PRESETS
# ===================

def _presets(title, team):
    return {
        'custom': {
            'subject': f"Important Information for {title}",
            'body': '',
        },
        'confirmation': {
            'subject': f"Your {title} Registration is Confirmed!",
            'body': (
                "Hello {{name}},\n\n"
                f"We're excited to confirm your registration for {title}!\n\n"
                "Please make sure to arrive on time and bring your ID. "
                "We look forward to seeing you at the event.\n\n"
                f"Best regards,\nThe {team}"
            ),
        },
        'reminder': {
            'subject': f"Reminder: {title} is Coming Soon!",
            'body': (
                "Hello {{name}},\n\n"
                f"This is a friendly reminder that {title} is coming up soon!\n\n"
                "Here are a few things to remember:\n"
                "- Bring your laptop and charger\n"
                "- Have your ID with you\n"
                "- Come with an open mind and ready to collaborate\n\n"
                "We can't wait to see what you'll build!\n\n"
                f"Best regards,\nThe {team}"
            ),
        },
        'update': {
            'subject': f"Important Update for {title}",
            'body': (
                "Hello {{name}},\n\n"
                f"We have an important update regarding {title}.\n\n"
                "[Your update details here]\n\n"
                "If you have any questions, please don't hesitate to reply to this email.\n\n"
                f"Best regards,\nThe {team}"
            ),
        },
    }


def get_preset(key, hackathon_title):
    """Default subject and body of a preset; unknown keys raise KeyError"""
    presets = _presets(hackathon_title, _get_brand()['team'])
    if key not in presets:
        raise KeyError(f"Unknown email preset: {key}")
    return dict(presets[key])


def list_presets(hackathon_title):
    presets = _presets(hackathon_title, _get_brand()['team'])
    return [{'key': key, **presets[key]} for key in PRESET_ORDER]


# ===================
# SUBSTITUTION
# ===================

def substitute(text, recipient):
    """Replace every {{name}} and {{email}}; other tokens are left alone"""
    if not text:
        return text
    for token in TOKENS:
        text = text.replace('{{' + token + '}}', str(recipient.get(token) or ''))
    return text


def render_for_recipient(template, recipient):
    """Personalised subject and body for one recipient"""
    return {
        'subject': substitute(template.get('subject', ''), recipient),
        'body': substitute(template.get('body', ''), recipient),
    }


# ===================
# ENVELOPE
# ===================

def _logo_grid(partnership_logos, style):
    items = []
    for logo in partnership_logos:
        name = logo.get('name') or ''
        url = logo.get('url') or ''
        img = (
            f'<img src="{url}" alt="{name or "Partnership Logo"}" width="80" height="60" '
            f'style="max-width: 80px; max-height: 60px; object-fit: contain;">'
        ) if url else ''
        caption = (
            f'<div style="color: {style["text"]}; font-size: 12px; margin-top: 4px; text-align: center;">{name}</div>'
        ) if name else ''
        items.append(
            '<div style="display: flex; flex-direction: column; align-items: center; width: 100px; margin: 0 10px;">'
            f'{img}{caption}</div>'
        )
    return f'''<div style="margin-top: 32px;">
      <hr style="border-color: {style['rule']}; margin: 32px 0;">
      <h3 style="color: {style['heading']}; font-size: 18px; font-weight: bold; margin-bottom: 16px; text-align: center;">In partnership with</h3>
      <div style="display: flex; flex-wrap: wrap; justify-content: center; gap: 20px; margin-top: 16px;">{''.join(items)}</div>
    </div>'''


def needs_sign_off(body):
    return not any(marker in (body or '') for marker in SIGN_OFF_MARKERS)


def build_envelope(subject, body, partnership_logos=None, hackathon_title=None):
    """Wrap an already personalised body in the campaign HTML envelope.

    Admin-authored subject and body are inserted as-is.
    """
    style = _get_style()
    brand = _get_brand()
    subject = subject or f"Message from {hackathon_title or brand['name']}"
    body = body or ''

    sign_off = ''
    if needs_sign_off(body):
        sign_off = (
            f'<div style="color: {style["text"]}; font-size: 16px; line-height: 24px;">'
            f'Thank you,<br>{brand["team"]}</div>'
        )

    logos = _logo_grid(partnership_logos, style) if partnership_logos else ''

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{subject}</title>
</head>
<body style="background-color: {style['bg']}; font-family: {style['font']}; margin: 0; padding: 0;">
  <div style="max-width: 600px; margin: 0 auto; padding: 32px;">
    <div style="width: 100%; max-width: 400px; margin: 32px auto; padding: 0 20px; text-align: center;">
      <img src="{brand['header_image']}" alt="{brand['name']} Logo" style="width: 100%; height: auto; display: block; object-fit: contain;">
    </div>
    <h1 style="color: {style['heading']}; font-size: 24px; font-weight: bold; margin: 16px 0;">{subject}</h1>
    <div style="color: {style['text']}; font-size: 16px; line-height: 24px; white-space: pre-wrap; margin: 24px 0;">{body}</div>
    <hr style="border-color: {style['rule']}; margin: 32px 0;">
    {sign_off}
    {logos}
  </div>
</body>
</html>'''
