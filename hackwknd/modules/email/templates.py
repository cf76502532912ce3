"""HTML for the registration confirmation email"""

from html import escape

STYLE = {
    'bg': '#1F2937',
    'panel_bg': '#374151',
    'heading': '#FFFFFF',
    'text': '#E5E7EB',
    'rule': '#4B5563',
    'btn_bg': '#C5FF00',
    'btn_text': '#111827',
}


def _detail(label, value):
    if not value:
        return ''
    return (
        f'<p style="color: {STYLE["text"]}; font-size: 16px; line-height: 24px; padding: 8px; margin: 0 0 8px;">'
        f'<strong>{label}:</strong> {escape(str(value))}</p>'
    )


def registration_confirmation_html(name, email, hackathon, brand_name, team_name,
                                   header_image, website_url):
    title = hackathon.get('title') or brand_name
    event_details = ''.join([
        _detail('Location', hackathon.get('location')),
        _detail('Date', hackathon.get('date')),
        _detail('Theme', hackathon.get('theme')),
    ])
    event_section = f"""
    <h2 style="color: {STYLE['heading']}; font-size: 20px; font-weight: bold; margin: 32px 0 16px;">Event Details</h2>
    <div style="background-color: {STYLE['panel_bg']}; padding: 24px; border-radius: 8px;">{event_details}</div>
    """ if event_details else ''

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Welcome to {escape(title)}!</title>
</head>
<body style="background-color: {STYLE['bg']}; font-family: sans-serif; margin: 0; padding: 0;">
  <div style="max-width: 600px; margin: 0 auto; padding: 32px;">
    <div style="width: 100%; max-width: 400px; margin: 32px auto; padding: 0 20px; text-align: center;">
      <img src="{header_image}" alt="{escape(brand_name)} Logo" style="width: 100%; height: auto; display: block; object-fit: contain;">
    </div>
    <h1 style="color: {STYLE['heading']}; font-size: 24px; font-weight: bold; margin: 16px 0;">Welcome to {escape(title)}!</h1>
    <p style="color: {STYLE['text']}; font-size: 16px; line-height: 24px;">
      Hello {escape(name or '')}, thank you for registering. We're excited to have you join us!
      Below you will find key information about the event to help you prepare.
    </p>
    {event_section}
    <h2 style="color: {STYLE['heading']}; font-size: 20px; font-weight: bold; margin: 32px 0 16px;">Your Registration Info</h2>
    <div style="background-color: {STYLE['panel_bg']}; padding: 24px; border-radius: 8px;">
      {_detail('Name', name)}{_detail('Email', email)}
    </div>
    <p style="color: {STYLE['text']}; font-size: 16px; line-height: 24px; margin-top: 32px;">
      Visit our website for more information about {escape(brand_name)}:
    </p>
    <a href="{website_url}" style="background-color: {STYLE['btn_bg']}; color: {STYLE['btn_text']}; padding: 12px 24px; border-radius: 6px; font-weight: 600; display: inline-block; text-decoration: none;">Visit {escape(brand_name)}</a>
    <hr style="border-color: {STYLE['rule']}; margin: 32px 0;">
    <p style="color: {STYLE['text']}; font-size: 16px; line-height: 24px;">Best regards,<br>The {escape(team_name)}</p>
  </div>
</body>
</html>"""
